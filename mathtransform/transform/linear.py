# Copyright European Space Agency, 2013

"""
Linear (affine and projective) transforms.

All linear transforms are described by a :class:`~mathtransform.matrix.Matrix`
in homogeneous coordinates. :func:`create` inspects the matrix and returns the
most specialized implementation available for it.
"""

import threading

import numpy as np

from mathtransform.errors import NoninvertibleTransformError
from mathtransform.formulas import bits, strictEquals
from mathtransform.matrix import Matrix, DoubleDouble
from mathtransform.transform.base import AbstractMathTransform, AbstractMathTransform1D,\
    ComparisonMode
from mathtransform.util.decorators import preset_lazy

def create(matrix):
    """
    Creates a linear transform from a matrix of size ``(n+1) x (m+1)``.

    The returned transform is, in order of preference, an :class:`IdentityTransform`,
    a 1-D :class:`LinearTransform1D`, an :class:`AffineTransform2D`, a :class:`CopyTransform`
    or a generic :class:`ProjectiveTransform`.

    :param Matrix matrix: the matrix, which is copied
    :rtype: LinearTransform
    """
    if matrix.isIdentity():
        return IdentityTransform.create(matrix.numRow - 1)
    if matrix.isAffine():
        if matrix.numRow == 2 and matrix.numCol == 2:
            return LinearTransform1D.create(matrix.getNumber(0, 0), matrix.getNumber(0, 1))
        if matrix.numRow == 3 and matrix.numCol == 3:
            return AffineTransform2D(matrix)
        if CopyTransform.isCopy(matrix):
            return CopyTransform(matrix)
    return ProjectiveTransform(matrix)

def expand(matrix, firstAffectedCoordinate, numTrailingCoordinates):
    """
    Expands an affine matrix so that it leaves `firstAffectedCoordinate` leading and
    `numTrailingCoordinates` trailing coordinates unchanged.

    :rtype: Matrix
    """
    k, m = firstAffectedCoordinate, numTrailingCoordinates
    numRow = matrix.numRow - 1
    numCol = matrix.numCol - 1
    result = Matrix(k + numRow + m + 1, k + numCol + m + 1)
    for i in range(k):
        result.setElement(i, i, 1)
    for j in range(numRow):
        for i in range(numCol):
            result.setElement(k + j, k + i, matrix.getNumber(j, i))
        result.setElement(k + j, k + numCol + m, matrix.getNumber(j, numCol))
    for i in range(m):
        result.setElement(k + numRow + i, k + numCol + i, 1)
    result.setElement(k + numRow + m, k + numCol + m, 1)
    return result

class LinearTransform(AbstractMathTransform):
    """
    Base class of transforms which can be described by a matrix.
    """

    def getMatrix(self):
        """
        :rtype: Matrix
        """
        raise NotImplementedError

    def isAffine(self):
        return self.getMatrix().isAffine()

    def _createInverse(self):
        inverse = create(self.getMatrix().inverse())
        if not inverse.isIdentity():
            preset_lazy(inverse, '_inverse', self)
        return inverse

    def _tryConcatenate(self, other, applyOtherFirst, factory):
        if isinstance(other, LinearTransform):
            first, second = (other, self) if applyOtherFirst else (self, other)
            return factory.createAffineTransform(second.getMatrix().multiply(first.getMatrix()))
        return super(LinearTransform, self)._tryConcatenate(other, applyOtherFirst, factory)

    def equals(self, other, mode=ComparisonMode.STRICT):
        if mode is ComparisonMode.APPROXIMATE and isinstance(other, LinearTransform):
            return other is self or self.getMatrix().equals(other.getMatrix())
        return super(LinearTransform, self).equals(other, mode)

    def _equalsSameType(self, other, mode):
        return self.getMatrix() == other.getMatrix()

    def _hashKey(self):
        return hash(self.getMatrix())

    def __repr__(self):
        return '{}({!r})'.format(type(self).__name__, self.getMatrix())

class ProjectiveTransform(LinearTransform):
    """
    Generic linear transform of any dimension, including non-affine (projective)
    matrices where the coordinates are divided by the homogeneous coordinate.
    """
    def __init__(self, matrix):
        self._matrix = matrix.copy().freeze()
        self._rebuildDerivedState()

    def _rebuildDerivedState(self):
        self._array = self._matrix.toArray()
        self._affine = self._matrix.isAffine()
        if self._affine:
            self._derivative = Matrix.fromArray(self._array[:-1, :-1]).freeze()

    @property
    def sourceDim(self):
        return self._matrix.numCol - 1

    @property
    def targetDim(self):
        return self._matrix.numRow - 1

    def getMatrix(self):
        return self._matrix

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        a = self._array
        x = np.append(srcPts[srcOff:srcOff + self.sourceDim], 1.0)
        y = a.dot(x)
        derivative = None
        if derivate:
            if self._affine:
                derivative = self._derivative
            else:
                w = y[-1]
                # d(y_j/w)/dx_i = (a_ji - (y_j/w)*a_wi) / w
                d = (a[:-1, :-1] - np.outer(y[:-1]/w, a[-1, :-1])) / w
                derivative = Matrix.fromArray(d)
        if dstPts is not None:
            if not self._affine:
                y = y / y[-1]
            dstPts[dstOff:dstOff + self.targetDim] = y[:-1]
        return derivative

    def _transformArray(self, coords):
        a = self._array
        out = coords.dot(a[:-1, :-1].T)
        out += a[:-1, -1]
        if not self._affine:
            w = coords.dot(a[-1, :-1])
            w += a[-1, -1]
            out /= w[:, np.newaxis]
        return out

class AffineTransform2D(ProjectiveTransform):
    """
    Two-dimensional affine transform.
    """
    def _rebuildDerivedState(self):
        super(AffineTransform2D, self)._rebuildDerivedState()
        (self._m00, self._m01, self._m02), (self._m10, self._m11, self._m12) = self._array[:2].tolist()

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        if dstPts is not None:
            x = srcPts[srcOff]
            y = srcPts[srcOff + 1]
            dstPts[dstOff] = self._m00*x + self._m01*y + self._m02
            dstPts[dstOff + 1] = self._m10*x + self._m11*y + self._m12
        return self._derivative if derivate else None

class CopyTransform(ProjectiveTransform):
    """
    A transform which only copies, reorders or drops coordinates.
    """

    @staticmethod
    def isCopy(matrix):
        """
        Whether the matrix is affine, without translation, and each row selects
        a different source coordinate with a factor 1.
        """
        if not matrix.isAffine():
            return False
        numCol = matrix.numCol - 1
        used = set()
        for j in range(matrix.numRow - 1):
            if matrix.getNumber(j, numCol) != 0:
                return False
            selected = None
            for i in range(numCol):
                n = matrix.getNumber(j, i)
                if n == 0:
                    continue
                if n != 1 or selected is not None:
                    return False
                selected = i
            if selected is None or selected in used:
                return False
            used.add(selected)
        return True

    def _rebuildDerivedState(self):
        super(CopyTransform, self)._rebuildDerivedState()
        self._indices = [int(np.argmax(row)) for row in self._array[:-1, :-1]]

    @property
    def indices(self):
        """
        For each target coordinate, the index of the source coordinate it is copied from.
        """
        return list(self._indices)

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        if dstPts is not None:
            values = [srcPts[srcOff + i] for i in self._indices]
            dstPts[dstOff:dstOff + len(values)] = values
        return self._derivative if derivate else None

    def _transformArray(self, coords):
        return coords[:, self._indices]

class IdentityTransform(LinearTransform):
    """
    The identity transform. Instances are shared, one per dimension.
    """
    _instances = {}
    _lock = threading.Lock()

    def __init__(self, dimension):
        self._dimension = dimension

    @staticmethod
    def create(dimension):
        with IdentityTransform._lock:
            instance = IdentityTransform._instances.get(dimension)
            if instance is None:
                instance = IdentityTransform(dimension)
                IdentityTransform._instances[dimension] = instance
            return instance

    @property
    def sourceDim(self):
        return self._dimension

    @property
    def targetDim(self):
        return self._dimension

    def isIdentity(self):
        return True

    def getMatrix(self):
        return Matrix.identity(self._dimension + 1).freeze()

    def inverse(self):
        return self

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        if dstPts is not None:
            dstPts[dstOff:dstOff + self._dimension] = srcPts[srcOff:srcOff + self._dimension]
        return Matrix.identity(self._dimension) if derivate else None

    def _transformArray(self, coords):
        return coords.copy()

    def _equalsSameType(self, other, mode):
        return True

    def _hashKey(self):
        return self._dimension

    def __reduce__(self):
        return (IdentityTransform.create, (self._dimension,))

    def __repr__(self):
        return 'IdentityTransform({})'.format(self._dimension)

class LinearTransform1D(AbstractMathTransform1D, LinearTransform):
    """
    One-dimensional transform ``y = x*scale + offset``.
    """
    def __init__(self, scale, offset):
        self._scaleNumber = DoubleDouble.of(scale)
        self._offsetNumber = DoubleDouble.of(offset)
        self._rebuildDerivedState()

    def _rebuildDerivedState(self):
        self._scale = self._scaleNumber.value
        self._offset = self._offsetNumber.value

    @staticmethod
    def create(scale, offset=0.0):
        """
        Creates a transform ``y = x*scale + offset``.

        Returns the 1-D identity if `scale` is 1 and `offset` is 0, and a
        :class:`ConstantTransform1D` if `scale` is 0.

        :param scale: a float or :class:`DoubleDouble`
        :param offset: a float or :class:`DoubleDouble`
        """
        scale = DoubleDouble.of(scale)
        offset = DoubleDouble.of(offset)
        if scale.isZero():
            if offset.error == 0 and strictEquals(offset.value, 0.0):
                return ConstantTransform1D.ZERO
            return ConstantTransform1D(offset)
        if scale == 1 and offset.isZero():
            return IdentityTransform.create(1)
        return LinearTransform1D(scale, offset)

    @property
    def scale(self):
        return self._scale

    @property
    def offset(self):
        return self._offset

    def transformValue(self, x):
        return x*self._scale + self._offset

    def derivativeValue(self, x):
        return self._scale

    def getMatrix(self):
        return Matrix(2, 2, [self._scaleNumber, self._offsetNumber, 0, 1]).freeze()

    def _createInverse(self):
        if self._scaleNumber.isZero():
            raise NoninvertibleTransformError('Constant transform is not invertible.')
        inverse = LinearTransform1D.create(self._scaleNumber.inverse(), -self._offsetNumber / self._scaleNumber)
        if not inverse.isIdentity():
            preset_lazy(inverse, '_inverse', self)
        return inverse

    def _equalsSameType(self, other, mode):
        # bitwise so that distinct NaN values and signed zeros are distinguished
        return (strictEquals(self._scale, other._scale) and strictEquals(self._offset, other._offset) and
                strictEquals(self._scaleNumber.error, other._scaleNumber.error) and
                strictEquals(self._offsetNumber.error, other._offsetNumber.error))

    def _hashKey(self):
        return (bits(self._scale), bits(self._offset))

    def __repr__(self):
        return '{}(scale={!r}, offset={!r})'.format(type(self).__name__, self._scale, self._offset)

class ConstantTransform1D(LinearTransform1D):
    """
    One-dimensional transform which returns the same value for every input.
    """
    def __init__(self, offset):
        super(ConstantTransform1D, self).__init__(0.0, offset)

    def transformValue(self, x):
        if isinstance(x, np.ndarray):
            return np.full(x.shape, self._offset)
        return self._offset

ConstantTransform1D.ZERO = ConstantTransform1D(0.0)
