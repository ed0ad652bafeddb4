# Copyright European Space Agency, 2013

"""
Choice of the iteration order when transforming coordinates in-place.

When the source and destination arrays of a batch evaluation are the same
storage, writing the result of one point may overwrite the coordinates of
a point which has not been read yet. Depending on the offsets and on the
number of dimensions per point, iterating in ascending or in descending
order avoids this. When neither order is safe, the source range needs
to be copied first.
"""

from enum import Enum

class IterationStrategy(Enum):
    ASCENDING = 1
    DESCENDING = 2
    BUFFER_SOURCE = 3
    
    @staticmethod
    def suggest(srcOff, srcDim, dstOff, dstDim, numPts):
        """
        Suggests a strategy for transforming `numPts` points stored in the same array.
        
        Each point is read entirely before its result is written, so only
        the interaction between different points matters.
        
        :param srcOff: index of the first source coordinate
        :param srcDim: number of dimensions of source points
        :param dstOff: index of the first destination coordinate
        :param dstDim: number of dimensions of destination points
        :param numPts: number of points to transform
        :rtype: IterationStrategy
        """
        if numPts <= 1:
            return IterationStrategy.ASCENDING
        srcEnd = srcOff + numPts*srcDim
        dstEnd = dstOff + numPts*dstDim
        if srcEnd <= dstOff or dstEnd <= srcOff:
            # disjoint ranges
            return IterationStrategy.ASCENDING
        if dstOff <= srcOff and dstDim <= srcDim:
            # writes stay behind the reads
            return IterationStrategy.ASCENDING
        if dstOff >= srcOff and dstDim >= srcDim:
            # writes stay ahead of the reads when starting from the last point
            return IterationStrategy.DESCENDING
        return IterationStrategy.BUFFER_SOURCE
