# Copyright European Space Agency, 2013

"""
The capability set shared by all transforms.

A transform maps coordinate tuples of :attr:`~AbstractMathTransform.sourceDim`
dimensions to tuples of :attr:`~AbstractMathTransform.targetDim` dimensions.
Transforms are immutable once constructed. The only state computed after
construction is memoized (the inverse), see :func:`~mathtransform.util.decorators.lazy_property`.

Subclasses implement :meth:`~AbstractMathTransform._transform` which evaluates
a single point and optionally its derivative. Subclasses which can evaluate many
points at once with numpy also override :meth:`~AbstractMathTransform._transformArray`.
"""

from enum import Enum

import numpy as np

from mathtransform.errors import MismatchedDimensionError, NoninvertibleTransformError
from mathtransform.matrix import Matrix
from mathtransform.util.decorators import lazy_property, clear_lazy
from mathtransform.util.iteration import IterationStrategy

class ComparisonMode(Enum):
    """
    STRICT compares the implementation class and the exact bits of all
    numbers, APPROXIMATE compares the mathematical function with a tolerance.
    """
    STRICT = 1
    APPROXIMATE = 2

def asPoint(point, dimension):
    """
    Converts an array-like to a new float array of the given length.

    :raise MismatchedDimensionError: if the point has another dimension
    """
    src = np.array(point, dtype=float).ravel()
    if len(src) != dimension:
        raise MismatchedDimensionError('Expected a point of {} dimensions but got {}.'.format(dimension, len(src)),
                                       dimension, len(src))
    return src

class AbstractMathTransform(object):
    """
    Base class of all transforms.
    """

    @property
    def sourceDim(self):
        raise NotImplementedError

    @property
    def targetDim(self):
        raise NotImplementedError

    def transform(self, point):
        """
        Transforms a single point.

        :param point: array-like of length :attr:`sourceDim`
        :rtype: ndarray of shape (targetDim,)
        """
        src = asPoint(point, self.sourceDim)
        dst = np.empty(self.targetDim)
        self._transform(src, 0, dst, 0, False)
        return dst

    def derivative(self, point):
        """
        Returns the Jacobian matrix of this transform at the given point.
        The matrix has :attr:`targetDim` rows and :attr:`sourceDim` columns.

        :rtype: Matrix
        """
        src = asPoint(point, self.sourceDim)
        return self._transform(src, 0, None, 0, True)

    def derivativeAndTransform(self, point):
        """
        Transforms a point and computes the derivative at that point in one pass.

        :rtype: tuple (Matrix, ndarray)
        """
        src = asPoint(point, self.sourceDim)
        dst = np.empty(self.targetDim)
        derivative = self._transform(src, 0, dst, 0, True)
        return derivative, dst

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        """
        Transforms the point at ``srcPts[srcOff:srcOff+sourceDim]`` and stores the result
        at ``dstPts[dstOff:dstOff+targetDim]``. All source coordinates must be read
        before the first destination coordinate is written, since both ranges may be
        the same memory.

        :param srcPts: flat float array
        :param dstPts: flat float array, or None if only the derivative is wanted
        :param bool derivate: whether to compute the derivative
        :return: the derivative at the source point if `derivate` is True, otherwise None
        :rtype: Matrix or None
        """
        raise NotImplementedError

    def _transformArray(self, coords):
        """
        Transforms an array of points. Implementations must not modify `coords`
        and must return a new array.

        :param coords: float ndarray of shape (n, sourceDim)
        :rtype: float ndarray of shape (n, targetDim)
        """
        out = np.empty((len(coords), self.targetDim))
        for i in range(len(coords)):
            self._transform(coords[i], 0, out[i], 0, False)
        return out

    def _isVectorized(self):
        return type(self)._transformArray is not AbstractMathTransform._transformArray

    def transformArray(self, coords):
        """
        Transforms an array of points.

        :param coords: array-like of shape (n, sourceDim)
        :rtype: ndarray of shape (n, targetDim)
        """
        coords = np.asarray(coords, dtype=float)
        if coords.ndim != 2 or coords.shape[1] != self.sourceDim:
            raise MismatchedDimensionError('Expected an array of shape (n, {}) but got {}.'.format(self.sourceDim, coords.shape),
                                           self.sourceDim, coords.shape[-1] if coords.ndim else 0)
        return self._transformArray(coords)

    def transformPoints(self, srcPts, srcOff, dstPts, dstOff, numPts):
        """
        Transforms `numPts` points stored consecutively in flat arrays.

        The source and destination arrays may be the same array,
        also with overlapping ranges.

        :param srcPts: flat float array with source coordinates
        :param int srcOff: index of the first coordinate of the first source point
        :param dstPts: flat float array receiving the transformed coordinates
        :param int dstOff: index of the first coordinate of the first target point
        :param int numPts: number of points to transform
        """
        if numPts <= 0:
            return
        srcDim = self.sourceDim
        tgtDim = self.targetDim
        if srcOff < 0 or srcOff + numPts*srcDim > len(srcPts):
            raise IndexError('Source range is outside the array.')
        if dstOff < 0 or dstOff + numPts*tgtDim > len(dstPts):
            raise IndexError('Destination range is outside the array.')
        if self._isVectorized():
            # the result is computed into a new array before being written
            coords = srcPts[srcOff:srcOff + numPts*srcDim].reshape(numPts, srcDim)
            dstPts[dstOff:dstOff + numPts*tgtDim] = self._transformArray(coords).ravel()
            return

        if srcPts is dstPts:
            strategy = IterationStrategy.suggest(srcOff, srcDim, dstOff, tgtDim, numPts)
        elif np.shares_memory(srcPts, dstPts):
            strategy = IterationStrategy.BUFFER_SOURCE
        else:
            strategy = IterationStrategy.ASCENDING
        srcInc, dstInc = srcDim, tgtDim
        if strategy is IterationStrategy.DESCENDING:
            srcOff += (numPts - 1)*srcDim
            dstOff += (numPts - 1)*tgtDim
            srcInc, dstInc = -srcDim, -tgtDim
        elif strategy is IterationStrategy.BUFFER_SOURCE:
            srcPts = srcPts[srcOff:srcOff + numPts*srcDim].copy()
            srcOff = 0
        for _ in range(numPts):
            self._transform(srcPts, srcOff, dstPts, dstOff, False)
            srcOff += srcInc
            dstOff += dstInc

    def inverse(self):
        """
        Returns the inverse of this transform.
        The same instance is returned on every call.

        :raise NoninvertibleTransformError: if this transform has no inverse
        """
        return self._inverse

    @lazy_property
    def _inverse(self):
        return self._createInverse()

    def _createInverse(self):
        raise NoninvertibleTransformError('{} is not invertible.'.format(type(self).__name__))

    def isIdentity(self):
        return False

    def getContextualParameters(self):
        """
        Returns the parameters describing this transform, for diagnostics only.

        :rtype: ContextualParameters or None
        """
        return None

    def _tryConcatenate(self, other, applyOtherFirst, factory):
        """
        Proposes a simpler transform equivalent to the concatenation of this
        transform with its neighbor `other` in a chain, or returns None.

        The default implementation recognizes a transform followed by its inverse.

        :param other: the neighbor step
        :param bool applyOtherFirst: True if `other` comes before this transform
        :param factory: the factory to use for creating the replacement
        :rtype: AbstractMathTransform or None
        """
        first, second = (other, self) if applyOtherFirst else (self, other)
        if first.sourceDim <= first.targetDim and first._isInverseEquals(second):
            return factory.createAffineTransform(Matrix.identity(first.sourceDim + 1))
        return None

    def _isInverseEquals(self, other):
        if self.targetDim != other.sourceDim or self.sourceDim != other.targetDim:
            return False
        try:
            inverse = self.inverse()
        except NoninvertibleTransformError:
            return False
        return inverse is other or inverse.equals(other, ComparisonMode.STRICT)

    def equals(self, other, mode=ComparisonMode.STRICT):
        """
        Compares this transform with another one.

        :param ComparisonMode mode: STRICT for exact equality of the implementation,
            APPROXIMATE for equality of the mathematical function within a tolerance
        """
        if other is self:
            return True
        if not isinstance(other, AbstractMathTransform) or type(other) is not type(self):
            return False
        if other.sourceDim != self.sourceDim or other.targetDim != self.targetDim:
            return False
        return self._equalsSameType(other, mode)

    def _equalsSameType(self, other, mode):
        return False

    def _hashKey(self):
        return id(self)

    def __eq__(self, other):
        return self.equals(other, ComparisonMode.STRICT)

    def __ne__(self, other):
        return not self.equals(other, ComparisonMode.STRICT)

    def __hash__(self):
        return hash((type(self).__name__, self._hashKey()))

    def _rebuildDerivedState(self):
        """
        Computes the fields derived from the minimal state of this transform.
        Called after construction and after unpickling.
        """
        pass

    def __getstate__(self):
        return clear_lazy(self.__dict__)

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._rebuildDerivedState()

    def __repr__(self):
        return '{}[{} -> {}]'.format(type(self).__name__, self.sourceDim, self.targetDim)

class AbstractMathTransform1D(AbstractMathTransform):
    """
    Base class of transforms from one dimension to one dimension.

    Subclasses implement :meth:`transformValue` and :meth:`derivativeValue`
    with numpy operations so that both also accept arrays.
    """

    @property
    def sourceDim(self):
        return 1

    @property
    def targetDim(self):
        return 1

    def transformValue(self, x):
        raise NotImplementedError

    def derivativeValue(self, x):
        raise NotImplementedError

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        x = srcPts[srcOff]
        if dstPts is not None:
            dstPts[dstOff] = self.transformValue(x)
        if derivate:
            return Matrix(1, 1, [self.derivativeValue(x)])
        return None

    def _transformArray(self, coords):
        return np.asarray(self.transformValue(coords[:, 0]), dtype=float).reshape(-1, 1)

class InverseTransform(AbstractMathTransform):
    """
    Base class for the inverse of a non-linear transform.
    The inverse of an instance is always the forward transform it was created from.
    """
    def __init__(self, forward):
        self._forward = forward

    @property
    def sourceDim(self):
        return self._forward.targetDim

    @property
    def targetDim(self):
        return self._forward.sourceDim

    def inverse(self):
        return self._forward

    def isIdentity(self):
        return self._forward.isIdentity()

    def getContextualParameters(self):
        context = self._forward.getContextualParameters()
        return context.inverse(context.descriptor) if context is not None else None

    def _equalsSameType(self, other, mode):
        return self._forward.equals(other.inverse(), mode)

    def _hashKey(self):
        return hash(self._forward)

    def __repr__(self):
        return 'Inverse({!r})'.format(self._forward)
