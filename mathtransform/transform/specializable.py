# Copyright European Space Agency, 2013

"""
Transforms which use a more accurate transform inside some regions
and a global transform everywhere else.

Regions are organized in a tree: a region is the child of the smallest
region enclosing it. Two regions may touch at their borders or be nested,
but must not partially overlap.
"""

import numpy as np

from mathtransform.errors import MismatchedDimensionError
from mathtransform.transform.base import AbstractMathTransform, InverseTransform
from mathtransform.util.decorators import preset_lazy

class _SubArea(object):
    """
    A node of the region tree.
    """
    def __init__(self, envelope, transform):
        self.envelope = envelope
        self.transform = transform
        self.children = []

def _insert(areas, area):
    for existing in areas:
        if existing.envelope == area.envelope:
            raise ValueError('Region {} is specified twice.'.format(area.envelope))
        if existing.envelope.containsEnvelope(area.envelope):
            _insert(existing.children, area)
            return
    contained = [e for e in areas if area.envelope.containsEnvelope(e.envelope)]
    for e in areas:
        if e not in contained and e.envelope.overlaps(area.envelope):
            raise ValueError('Regions {} and {} partially overlap.'.format(e.envelope, area.envelope))
    for e in contained:
        areas.remove(e)
        area.children.append(e)
    areas.append(area)

def _find(areas, point):
    """
    Returns the deepest area containing the point, or None.
    """
    for area in areas:
        if area.envelope.contains(point):
            deeper = _find(area.children, point)
            return deeper if deeper is not None else area
    return None

def _evaluate(areas, locations, coords, candidates, out, select):
    """
    Evaluates the points selected by `candidates` which fall inside one of the areas.
    The points which were handled are removed from `candidates`.

    :param locations: positions used for finding the area of each point
    :param coords: the values given to the transform of the area
    :param select: function returning the transform to use for an area
    """
    for area in areas:
        inside = candidates & area.envelope.containsPoints(locations)
        if not inside.any():
            continue
        candidates &= ~inside
        _evaluate(area.children, locations, coords, inside, out, select)
        if inside.any():
            out[inside] = select(area)._transformArray(coords[inside])

class SpecializableTransform(AbstractMathTransform):
    """
    A global transform with overrides inside some regions of the source space.

    Each point is evaluated with the transform of the smallest region containing it,
    or with the global transform if no region contains it. A point on the border
    shared by two regions is evaluated with the region which was specified first.
    """
    def __init__(self, globalTransform, specializations):
        """
        :param globalTransform: the transform used outside all regions
        :param specializations: sequence of ``(Envelope, transform)`` pairs
        :raise MismatchedDimensionError: if a region or transform has other dimensions
            than the global transform
        :raise ValueError: if a region is empty, or if two regions partially overlap or are equal
        """
        self._global = globalTransform
        self._specializations = list(specializations)
        for envelope, transform in self._specializations:
            if envelope.isEmpty():
                raise ValueError('Region {} is empty.'.format(envelope))
            if envelope.dimension != globalTransform.sourceDim:
                raise MismatchedDimensionError('Region has {} dimensions but the transform expects {}.'.format(
                                                envelope.dimension, globalTransform.sourceDim),
                                               globalTransform.sourceDim, envelope.dimension)
            if (transform.sourceDim != globalTransform.sourceDim or
                transform.targetDim != globalTransform.targetDim):
                raise MismatchedDimensionError('Transform for region {} has dimensions {} -> {} instead of {} -> {}.'.format(
                                                envelope, transform.sourceDim, transform.targetDim,
                                                globalTransform.sourceDim, globalTransform.targetDim),
                                               globalTransform.sourceDim, transform.sourceDim)
        self._rebuildDerivedState()

    def _rebuildDerivedState(self):
        self._areas = []
        for envelope, transform in self._specializations:
            _insert(self._areas, _SubArea(envelope, transform))

    @property
    def sourceDim(self):
        return self._global.sourceDim

    @property
    def targetDim(self):
        return self._global.targetDim

    @property
    def globalTransform(self):
        return self._global

    def getSpecializations(self):
        """
        :rtype: list of ``(Envelope, transform)`` pairs in the order they were given
        """
        return list(self._specializations)

    def transformAt(self, point):
        """
        Returns the transform used for evaluating the given point.
        """
        area = _find(self._areas, np.asarray(point, dtype=float))
        return area.transform if area is not None else self._global

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        point = srcPts[srcOff:srcOff + self.sourceDim]
        return self.transformAt(point)._transform(srcPts, srcOff, dstPts, dstOff, derivate)

    def _transformArray(self, coords):
        out = np.empty((len(coords), self.targetDim))
        remaining = np.ones(len(coords), dtype=bool)
        _evaluate(self._areas, coords, coords, remaining, out, lambda area: area.transform)
        if remaining.any():
            out[remaining] = self._global._transformArray(coords[remaining])
        return out

    def _createInverse(self):
        inverse = _Inverse(self)
        preset_lazy(inverse, '_inverse', self)
        return inverse

    def _equalsSameType(self, other, mode):
        if not self._global.equals(other._global, mode):
            return False
        if len(self._specializations) != len(other._specializations):
            return False
        return all(e1 == e2 and t1.equals(t2, mode) for (e1, t1), (e2, t2)
                   in zip(self._specializations, other._specializations))

    def _hashKey(self):
        return (hash(self._global), tuple(hash(e) for e, _ in self._specializations))

    def __getstate__(self):
        state = super(SpecializableTransform, self).__getstate__()
        del state['_areas']
        return state

    def __repr__(self):
        return 'SpecializableTransform({!r}, {} regions)'.format(self._global, len(self._specializations))

class _Inverse(InverseTransform):
    """
    The inverse of a :class:`SpecializableTransform`.

    The region of a point is found from the position given by the inverse of the
    global transform, then the point is evaluated with the inverse of the transform
    of that region.
    """
    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        forward = self._forward
        src = np.array(srcPts[srcOff:srcOff + self.sourceDim], dtype=float)
        globalInverse = forward._global.inverse()
        location = np.empty(forward.sourceDim)
        globalInverse._transform(src, 0, location, 0, False)
        area = _find(forward._areas, location)
        if area is None:
            return globalInverse._transform(src, 0, dstPts, dstOff, derivate)
        return area.transform.inverse()._transform(src, 0, dstPts, dstOff, derivate)

    def _transformArray(self, coords):
        forward = self._forward
        globalInverse = forward._global.inverse()
        locations = globalInverse._transformArray(coords)
        out = np.empty((len(coords), self.targetDim))
        remaining = np.ones(len(coords), dtype=bool)
        _evaluate(forward._areas, locations, coords, remaining, out, lambda area: area.transform.inverse())
        out[remaining] = locations[remaining]
        return out

def specialize(globalTransform, specializations):
    """
    Returns a transform using the given transforms inside their regions
    and `globalTransform` elsewhere.

    :param specializations: mapping or sequence of pairs from
        :class:`~mathtransform.geometry.Envelope` to transform
    :return: `globalTransform` itself if there is no specialization
    """
    if hasattr(specializations, 'items'):
        specializations = specializations.items()
    specializations = list(specializations)
    if not specializations:
        return globalTransform
    return SpecializableTransform(globalTransform, specializations)
