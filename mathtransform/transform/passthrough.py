# Copyright European Space Agency, 2013

"""
Transforms which apply a sub-transform to some coordinates only,
copying the other coordinates unchanged.
"""

import numpy as np

from mathtransform.errors import MismatchedDimensionError
from mathtransform.matrix import Matrix
from mathtransform.transform.base import AbstractMathTransform
from mathtransform.transform.linear import LinearTransform, IdentityTransform, expand, create as createLinear
from mathtransform.util.decorators import preset_lazy

class PassThroughTransform(AbstractMathTransform):
    """
    Applies a sub-transform on the coordinates in the range
    ``[firstAffectedCoordinate, firstAffectedCoordinate + subTransform.sourceDim)``
    and copies the `firstAffectedCoordinate` leading and the `numTrailingCoordinates`
    trailing coordinates unchanged.
    """
    def __init__(self, firstAffectedCoordinate, subTransform, numTrailingCoordinates):
        if firstAffectedCoordinate < 0 or numTrailingCoordinates < 0:
            raise ValueError('Negative number of pass-through coordinates.')
        if isinstance(subTransform, PassThroughTransform):
            firstAffectedCoordinate += subTransform._firstAffectedCoordinate
            numTrailingCoordinates += subTransform._numTrailingCoordinates
            subTransform = subTransform._subTransform
        self._firstAffectedCoordinate = firstAffectedCoordinate
        self._subTransform = subTransform
        self._numTrailingCoordinates = numTrailingCoordinates

    @staticmethod
    def create(firstAffectedCoordinate, subTransform, numTrailingCoordinates, factory=None):
        """
        Creates a pass-through transform, or a simpler equivalent.

        If both counts are zero, `subTransform` itself is returned. An identity
        sub-transform gives an identity of the combined dimension and an affine
        sub-transform is expanded into a single matrix.
        """
        k, m = firstAffectedCoordinate, numTrailingCoordinates
        if k < 0 or m < 0:
            raise ValueError('Negative number of pass-through coordinates.')
        if k == 0 and m == 0:
            return subTransform
        if subTransform.isIdentity() and subTransform.sourceDim == subTransform.targetDim:
            return IdentityTransform.create(k + subTransform.sourceDim + m)
        if isinstance(subTransform, LinearTransform) and subTransform.isAffine():
            matrix = expand(subTransform.getMatrix(), k, m)
            if factory is not None:
                return factory.createAffineTransform(matrix)
            return createLinear(matrix)
        return PassThroughTransform(k, subTransform, m)

    @property
    def sourceDim(self):
        return self._firstAffectedCoordinate + self._subTransform.sourceDim + self._numTrailingCoordinates

    @property
    def targetDim(self):
        return self._firstAffectedCoordinate + self._subTransform.targetDim + self._numTrailingCoordinates

    @property
    def firstAffectedCoordinate(self):
        return self._firstAffectedCoordinate

    @property
    def numTrailingCoordinates(self):
        return self._numTrailingCoordinates

    @property
    def subTransform(self):
        return self._subTransform

    def getModifiedCoordinates(self):
        """
        :rtype: list of the indices of the source coordinates given to the sub-transform
        """
        k = self._firstAffectedCoordinate
        return list(range(k, k + self._subTransform.sourceDim))

    def isIdentity(self):
        return self._subTransform.isIdentity()

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        k, m = self._firstAffectedCoordinate, self._numTrailingCoordinates
        sub = self._subTransform
        s, t = sub.sourceDim, sub.targetDim
        src = np.array(srcPts[srcOff:srcOff + self.sourceDim], dtype=float)
        if dstPts is None:
            d = sub._transform(src, k, None, 0, derivate)
        else:
            out = np.empty(self.targetDim)
            out[:k] = src[:k]
            d = sub._transform(src, k, out, k, derivate)
            out[k+t:] = src[k+s:]
            dstPts[dstOff:dstOff + self.targetDim] = out
        if not derivate:
            return None
        jacobian = np.zeros((self.targetDim, self.sourceDim))
        jacobian[:k, :k] = np.identity(k)
        jacobian[k:k+t, k:k+s] = d.toArray()
        jacobian[k+t:, k+s:] = np.identity(m)
        return Matrix.fromArray(jacobian)

    def _transformArray(self, coords):
        k = self._firstAffectedCoordinate
        s = self._subTransform.sourceDim
        middle = self._subTransform._transformArray(coords[:, k:k+s])
        return np.hstack((coords[:, :k], middle, coords[:, k+s:]))

    def _createInverse(self):
        inverse = PassThroughTransform(self._firstAffectedCoordinate, self._subTransform.inverse(),
                                       self._numTrailingCoordinates)
        preset_lazy(inverse, '_inverse', self)
        return inverse

    def _tryConcatenate(self, other, applyOtherFirst, factory):
        k, m = self._firstAffectedCoordinate, self._numTrailingCoordinates
        if isinstance(other, LinearTransform):
            if not applyOtherFirst:
                replacement = self._dropSubTransform(other.getMatrix(), factory)
                if replacement is not None:
                    return replacement
            if other.isAffine():
                dim = self.sourceDim if applyOtherFirst else self.targetDim
                matrix = self._toSubMatrix(other.getMatrix(), dim)
                if matrix is not None:
                    step = factory.createAffineTransform(matrix)
                    if applyOtherFirst:
                        sub = factory.createConcatenatedTransform(step, self._subTransform)
                    else:
                        sub = factory.createConcatenatedTransform(self._subTransform, step)
                    return factory.createPassThroughTransform(k, sub, m)
        elif (isinstance(other, PassThroughTransform) and
              other._firstAffectedCoordinate == k and other._numTrailingCoordinates == m):
            first, second = (other, self) if applyOtherFirst else (self, other)
            sub = factory.createConcatenatedTransform(first._subTransform, second._subTransform)
            return factory.createPassThroughTransform(k, sub, m)
        return super(PassThroughTransform, self)._tryConcatenate(other, applyOtherFirst, factory)

    def _dropSubTransform(self, matrix, factory):
        """
        If the matrix following this transform ignores all outputs of the sub-transform,
        returns the same matrix laid out for the inputs of this transform.
        """
        k = self._firstAffectedCoordinate
        s, t = self._subTransform.sourceDim, self._subTransform.targetDim
        for j in range(matrix.numRow):
            for i in range(k, k + t):
                if not matrix.getNumber(j, i).isZero():
                    return None
        reduced = matrix.removeColumns(k, k + t)
        expanded = Matrix(reduced.numRow, self.sourceDim + 1)
        for j in range(reduced.numRow):
            for i in range(reduced.numCol):
                expanded.setElement(j, i if i < k else i + s, reduced.getNumber(j, i))
        return factory.createAffineTransform(expanded)

    def _toSubMatrix(self, matrix, dim):
        """
        If the affine matrix copies the pass-through coordinates unchanged and
        mixes the other coordinates only among themselves, returns the part of
        the matrix acting on those other coordinates. Returns None otherwise.

        :param int dim: the number of dimensions on the side of this transform
            where the matrix is applied
        """
        if matrix.numRow != dim + 1 or matrix.numCol != dim + 1:
            return None
        k = self._firstAffectedCoordinate
        n = dim - k - self._numTrailingCoordinates
        for j in range(dim):
            inSub = k <= j < k + n
            for i in range(dim + 1):
                value = matrix.getNumber(j, i)
                if inSub:
                    if not (k <= i < k + n or i == dim) and not value.isZero():
                        return None
                elif value != (1 if i == j else 0):
                    return None
        sub = Matrix(n + 1, n + 1)
        for j in range(n):
            for i in range(n):
                sub.setElement(j, i, matrix.getNumber(k + j, k + i))
            sub.setElement(j, n, matrix.getNumber(k + j, dim))
        sub.setElement(n, n, 1)
        return sub

    def _equalsSameType(self, other, mode):
        return (self._firstAffectedCoordinate == other._firstAffectedCoordinate and
                self._numTrailingCoordinates == other._numTrailingCoordinates and
                self._subTransform.equals(other._subTransform, mode))

    def _hashKey(self):
        return (self._firstAffectedCoordinate, hash(self._subTransform), self._numTrailingCoordinates)

    def __repr__(self):
        return 'PassThroughTransform({}, {!r}, {})'.format(self._firstAffectedCoordinate, self._subTransform,
                                                           self._numTrailingCoordinates)

def createIndexed(modifiedCoordinates, subTransform, resultDim, factory):
    """
    Creates a transform which applies `subTransform` on the given coordinates only.

    :param modifiedCoordinates: strictly increasing indices of the source coordinates
        given to the sub-transform, in range ``[0, resultDim)``
    :param subTransform: transform with as many source dimensions as there are indices
    :param int resultDim: the number of source dimensions of the returned transform
    :raise MismatchedDimensionError: if the number of indices differs from the number
        of source dimensions of `subTransform`, or if the indices are not contiguous
        and `subTransform` changes the number of dimensions
    """
    indices = [int(i) for i in modifiedCoordinates]
    if len(indices) != subTransform.sourceDim:
        raise MismatchedDimensionError('Sub-transform expects {} coordinates but {} indices are given.'.format(
                                        subTransform.sourceDim, len(indices)),
                                       subTransform.sourceDim, len(indices))
    if not indices:
        raise ValueError('No modified coordinate.')
    if any(b <= a for a, b in zip(indices, indices[1:])):
        raise ValueError('Indices must be strictly increasing: {}'.format(indices))
    if indices[0] < 0 or indices[-1] >= resultDim:
        raise IndexError('Indices {} are outside the range [0, {}).'.format(indices, resultDim))
    k = indices[0]
    if indices[-1] - k + 1 == len(indices):
        return factory.createPassThroughTransform(k, subTransform, resultDim - indices[-1] - 1)
    if subTransform.sourceDim != subTransform.targetDim:
        raise MismatchedDimensionError('Non-contiguous coordinates require a sub-transform '
                                       'preserving the number of dimensions.',
                                       subTransform.sourceDim, subTransform.targetDim)
    # move the modified coordinates first, apply the sub-transform, then restore the order
    order = indices + [i for i in range(resultDim) if i not in indices]
    permutation = Matrix(resultDim + 1, resultDim + 1)
    for j, i in enumerate(order):
        permutation.setElement(j, i, 1)
    permutation.setElement(resultDim, resultDim, 1)
    return factory.createConcatenatedTransform(
        factory.createAffineTransform(permutation),
        factory.createPassThroughTransform(0, subTransform, resultDim - len(indices)),
        factory.createAffineTransform(permutation.inverse()))

def compound(transforms, factory):
    """
    Creates a transform which applies each transform on its own coordinates,
    the coordinates of all transforms being stored side by side.
    """
    transforms = list(transforms)
    if not transforms:
        raise ValueError('No transform to compound.')
    if len(transforms) == 1:
        return transforms[0]
    before = 0
    after = sum(t.sourceDim for t in transforms)
    steps = []
    for t in transforms:
        after -= t.sourceDim
        steps.append(factory.createPassThroughTransform(before, t, after))
        before += t.targetDim
    return factory.createConcatenatedTransform(*steps)
