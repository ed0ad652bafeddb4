# Copyright European Space Agency, 2013

"""
Axis-aligned bounding regions in an arbitrary number of dimensions.
"""

import numpy as np

class Envelope(object):
    """
    A closed box defined by its lower and upper corners.
    """
    def __init__(self, lower, upper):
        lower = np.array(lower, dtype=float).ravel()
        upper = np.array(upper, dtype=float).ravel()
        if lower.shape != upper.shape:
            raise ValueError('Corners have different dimensions: {} and {}'.format(len(lower), len(upper)))
        self._lower = lower
        self._upper = upper
        self._lower.flags.writeable = False
        self._upper.flags.writeable = False
        
    @property
    def dimension(self):
        return len(self._lower)
    
    @property
    def lower(self):
        return self._lower
    
    @property
    def upper(self):
        return self._upper
    
    def isEmpty(self):
        return not np.all(self._upper > self._lower)
    
    def contains(self, point):
        """
        Whether the point lies inside the envelope or on its border.
        """
        point = np.asarray(point)
        return bool(np.all(point >= self._lower) and np.all(point <= self._upper))
    
    def containsPoints(self, points):
        """
        Vectorized :meth:`contains`.
        
        :param points: shape (n, dimension)
        :rtype: boolean ndarray of shape (n,)
        """
        points = np.asarray(points)
        return np.all((points >= self._lower) & (points <= self._upper), axis=1)
    
    def containsEnvelope(self, other):
        return bool(np.all(other.lower >= self._lower) and np.all(other.upper <= self._upper))
    
    def overlaps(self, other):
        """
        Whether the interiors of both envelopes intersect.
        Envelopes which only touch at their borders do not overlap.
        """
        return bool(np.all(self._lower < other.upper) and np.all(other.lower < self._upper))
    
    def __eq__(self, other):
        if not isinstance(other, Envelope):
            return NotImplemented
        return (np.array_equal(self._lower, other.lower) and 
                np.array_equal(self._upper, other.upper))
        
    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq
    
    def __hash__(self):
        return hash((self._lower.tobytes(), self._upper.tobytes()))
    
    def __repr__(self):
        return 'Envelope(lower={}, upper={})'.format(list(self._lower), list(self._upper))
