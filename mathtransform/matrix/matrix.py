# Copyright European Space Agency, 2013

"""
Matrices describing affine and projective transforms in homogeneous coordinates.

A matrix of size ``(n+1) x (m+1)`` maps ``m``-dimensional source coordinates to
``n``-dimensional target coordinates. The last column contains the translation
terms and the last row is ``[0, ..., 0, 1]`` for affine transforms.

Each element is stored either as a float or as a
:class:`~mathtransform.matrix.doubledouble.DoubleDouble` when the float alone
would lose precision. Zero elements are not stored at all (``None``) so that
products and inversions can skip them cheaply.
"""

import math

import numpy as np

from mathtransform.errors import MismatchedDimensionError, NoninvertibleMatrixError,\
    AlreadyInitializedError
from mathtransform.formulas import bits, epsilonEqual, COMPARISON_THRESHOLD
from mathtransform.matrix.doubledouble import DoubleDouble

def _store(value):
    """
    Converts a value to its stored form: None for zero,
    DoubleDouble if there is an error term, float otherwise.
    """
    if value is None:
        return None
    if isinstance(value, DoubleDouble):
        if value.error != 0 and math.isfinite(value.value):
            return value
        value = value.value
    value = float(value)
    if value == 0:
        return None
    return value

def _number(stored):
    if stored is None:
        return DoubleDouble.ZERO
    if isinstance(stored, DoubleDouble):
        return stored
    return DoubleDouble(stored)

def _value(stored):
    if stored is None:
        return 0.0
    if isinstance(stored, DoubleDouble):
        return stored.value
    return stored

def _key(stored):
    if stored is None:
        return None
    if isinstance(stored, DoubleDouble):
        return (bits(stored.value), bits(stored.error))
    return bits(stored)

class Matrix(object):
    """
    A rectangular matrix with extended precision elements.

    Elements are addressed by ``(row, column)`` and laid out in row-major order.
    """
    def __init__(self, numRow, numCol, elements=None):
        """
        :param int numRow: number of rows
        :param int numCol: number of columns
        :param elements: optional flat sequence of ``numRow*numCol`` numbers in
                         row-major order; the matrix is filled with zeros otherwise
        """
        if numRow <= 0 or numCol <= 0:
            raise ValueError('Illegal matrix size: {}x{}'.format(numRow, numCol))
        self._numRow = numRow
        self._numCol = numCol
        self._frozen = False
        if elements is None:
            self._elements = [None] * (numRow*numCol)
        else:
            elements = list(elements)
            if len(elements) != numRow*numCol:
                raise MismatchedDimensionError('Expected {} elements but got {}.'.format(numRow*numCol, len(elements)),
                                               numRow*numCol, len(elements))
            self._elements = [_store(v) for v in elements]

    @staticmethod
    def identity(size):
        """
        Returns a square identity matrix.
        """
        return Matrix.diagonal(size, size)

    @staticmethod
    def diagonal(numRow, numCol):
        """
        Returns a matrix with ones on the diagonal and zeros elsewhere.
        If the matrix is not square, the extra rows or columns are zero.
        """
        m = Matrix(numRow, numCol)
        for i in range(min(numRow, numCol)):
            m._elements[i*numCol + i] = 1.0
        return m

    @staticmethod
    def fromArray(array):
        """
        Creates a matrix from a 2D array-like of numbers.
        Elements may be :class:`DoubleDouble` instances.
        """
        rows = [list(row) for row in array]
        if not rows or not rows[0]:
            raise ValueError('Empty matrix')
        numCol = len(rows[0])
        for row in rows:
            if len(row) != numCol:
                raise ValueError('All rows must have the same length.')
        return Matrix(len(rows), numCol, [v for row in rows for v in row])

    @staticmethod
    def createAffine(linear, translation):
        """
        Creates an affine matrix from its linear part and translation vector.

        :param linear: array-like of shape (n, m)
        :param translation: array-like of shape (n,)
        """
        linear = [list(row) for row in linear]
        translation = list(translation)
        if len(translation) != len(linear):
            raise MismatchedDimensionError('Translation vector has the wrong length.',
                                           len(linear), len(translation))
        numCol = len(linear[0]) + 1
        m = Matrix(len(linear) + 1, numCol)
        for j, row in enumerate(linear):
            for i, v in enumerate(row):
                m._elements[j*numCol + i] = _store(v)
            m._elements[j*numCol + numCol - 1] = _store(translation[j])
        m._elements[-1] = 1.0
        return m

    @property
    def numRow(self):
        return self._numRow

    @property
    def numCol(self):
        return self._numCol

    @property
    def isSquare(self):
        return self._numRow == self._numCol

    @property
    def isFrozen(self):
        return self._frozen

    def _index(self, row, column):
        if not (0 <= row < self._numRow and 0 <= column < self._numCol):
            raise IndexError('Element ({},{}) is outside a {}x{} matrix.'.format(
                              row, column, self._numRow, self._numCol))
        return row*self._numCol + column

    def getElement(self, row, column):
        """
        Returns the element as a float, dropping any extended precision.
        """
        return _value(self._elements[self._index(row, column)])

    def getNumber(self, row, column):
        """
        Returns the element with all its precision.

        :rtype: DoubleDouble
        """
        return _number(self._elements[self._index(row, column)])

    def setElement(self, row, column, value):
        """
        :param value: a float or a :class:`DoubleDouble`
        :raise AlreadyInitializedError: if the matrix is frozen
        """
        if self._frozen:
            raise AlreadyInitializedError('This matrix is read-only.')
        self._elements[self._index(row, column)] = _store(value)

    def freeze(self):
        """
        Makes this matrix read-only.

        :return: self
        """
        self._frozen = True
        return self

    def copy(self):
        """
        Returns a modifiable copy of this matrix.
        """
        m = Matrix(self._numRow, self._numCol)
        m._elements = list(self._elements)
        return m

    def toArray(self):
        """
        :rtype: float ndarray of shape (numRow, numCol)
        """
        return np.array([_value(v) for v in self._elements], dtype=float).reshape(self._numRow, self._numCol)

    def isIdentity(self, tolerance=0):
        if not self.isSquare:
            return False
        n = self._numCol
        for k, v in enumerate(self._elements):
            expected = 1.0 if k // n == k % n else 0.0
            if tolerance == 0:
                if expected == 0:
                    if v is not None:
                        return False
                elif v != 1.0 or isinstance(v, DoubleDouble):
                    return False
            elif not abs(_value(v) - expected) <= tolerance:
                return False
        return True

    def isAffine(self):
        """
        Whether the last row is ``[0, ..., 0, 1]``.
        """
        last = self._elements[(self._numRow - 1)*self._numCol:]
        return (all(v is None for v in last[:-1]) and
                last[-1] == 1.0 and not isinstance(last[-1], DoubleDouble))

    def hasNaN(self):
        return any(isinstance(v, float) and math.isnan(v) for v in self._elements)

    def multiply(self, other):
        """
        Returns ``self x other`` computed in extended precision.
        When both matrices describe transforms, the result applies `other` first.

        :raise MismatchedDimensionError: if the number of columns of this matrix
                                         differs from the number of rows of `other`
        """
        if self._numCol != other.numRow:
            raise MismatchedDimensionError('Cannot multiply a {}x{} matrix by a {}x{} matrix.'.format(
                                            self._numRow, self._numCol, other.numRow, other.numCol),
                                           self._numCol, other.numRow)
        n = self._numCol
        numCol = other.numCol
        result = Matrix(self._numRow, numCol)
        for j in range(self._numRow):
            row = self._elements[j*n:(j+1)*n]
            for i in range(numCol):
                s = None
                for k, a in enumerate(row):
                    if a is None:
                        continue
                    b = other._elements[k*numCol + i]
                    if b is None:
                        continue
                    p = _number(a) * _number(b)
                    s = p if s is None else s + p
                result._elements[j*numCol + i] = _store(s)
        return result

    def inverse(self):
        """
        Returns the inverse of this matrix, computed by Gauss-Jordan elimination in
        extended precision. The inverse of an affine matrix is affine.

        :raise NoninvertibleMatrixError: if this matrix is not square or is singular
            (a pivot not greater than :data:`~mathtransform.formulas.COMPARISON_THRESHOLD`
            times the largest element of its column)
        """
        if not self.isSquare:
            raise NoninvertibleMatrixError('Non-square {}x{} matrix can not be inverted.'.format(
                                            self._numRow, self._numCol))
        n = self._numRow
        # largest magnitude of each column, the reference for the pivots
        norms = [max(abs(_value(self._elements[j*n + i])) for j in range(n)) for i in range(n)]
        rows = []
        for j in range(n):
            row = [_number(v) for v in self._elements[j*n:(j+1)*n]]
            row += [DoubleDouble.ONE if i == j else DoubleDouble.ZERO for i in range(n)]
            rows.append(row)
        for c in range(n):
            pivot = max(range(c, n), key=lambda r: abs(rows[r][c].value))
            p = rows[pivot][c]
            if not math.isfinite(p.value) or abs(p.value) <= COMPARISON_THRESHOLD * norms[c]:
                raise NoninvertibleMatrixError('Matrix is singular.')
            rows[c], rows[pivot] = rows[pivot], rows[c]
            prow = [x / p for x in rows[c]]
            rows[c] = prow
            for r in range(n):
                if r == c:
                    continue
                f = rows[r][c]
                if f.isZero():
                    continue
                rows[r] = [x - f*y for x, y in zip(rows[r], prow)]
        result = Matrix(n, n, [rows[j][n + i] for j in range(n) for i in range(n)])
        if self.isAffine():
            for i in range(n - 1):
                result._elements[(n - 1)*n + i] = None
            result._elements[-1] = 1.0
        return result

    def convertBefore(self, srcDim, scale=None, offset=None):
        """
        Modifies this matrix so that the source coordinate at `srcDim` is
        converted by ``x*scale + offset`` before this matrix is applied.

        :param scale: the scale factor, or None for 1
        :param offset: the offset, or None for 0
        """
        if self._frozen:
            raise AlreadyInitializedError('This matrix is read-only.')
        n = self._numCol
        if not 0 <= srcDim < n - 1:
            raise IndexError('Source dimension {} out of range.'.format(srcDim))
        for j in range(self._numRow):
            e = self._elements[j*n + srcDim]
            if e is None:
                continue
            e = _number(e)
            if offset is not None:
                t = _number(self._elements[j*n + n - 1]) + e*offset
                self._elements[j*n + n - 1] = _store(t)
            if scale is not None:
                self._elements[j*n + srcDim] = _store(e*scale)

    def convertAfter(self, tgtDim, scale=None, offset=None):
        """
        Modifies this matrix so that the target coordinate at `tgtDim` is
        converted by ``y*scale + offset`` after this matrix is applied.

        :param scale: the scale factor, or None for 1
        :param offset: the offset, or None for 0
        """
        if self._frozen:
            raise AlreadyInitializedError('This matrix is read-only.')
        n = self._numCol
        if not 0 <= tgtDim < self._numRow - 1:
            raise IndexError('Target dimension {} out of range.'.format(tgtDim))
        lastRow = (self._numRow - 1)*n
        for i in range(n):
            e = self._elements[tgtDim*n + i]
            if scale is not None and e is not None:
                e = _number(e)*scale
            if offset is not None:
                w = self._elements[lastRow + i]
                if w is not None:
                    e = _number(e) + _number(w)*offset
            self._elements[tgtDim*n + i] = _store(e)

    def removeColumns(self, lower, upper):
        """
        Returns a new matrix without the columns in the range ``[lower, upper)``.
        """
        n = self._numCol
        keep = [i for i in range(n) if not lower <= i < upper]
        m = Matrix(self._numRow, len(keep))
        m._elements = [self._elements[j*n + i] for j in range(self._numRow) for i in keep]
        return m

    def removeRows(self, lower, upper):
        """
        Returns a new matrix without the rows in the range ``[lower, upper)``.
        """
        n = self._numCol
        keep = [j for j in range(self._numRow) if not lower <= j < upper]
        m = Matrix(len(keep), n)
        m._elements = [self._elements[j*n + i] for j in keep for i in range(n)]
        return m

    def equals(self, other, tolerance=COMPARISON_THRESHOLD):
        """
        Compares the elements of both matrices with a relative tolerance.
        Extended precision is ignored.
        """
        if not isinstance(other, Matrix):
            return False
        if self._numRow != other.numRow or self._numCol != other.numCol:
            return False
        return all(epsilonEqual(_value(a), _value(b), tolerance)
                   for a, b in zip(self._elements, other._elements))

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return (self._numRow == other.numRow and self._numCol == other.numCol and
                all(_key(a) == _key(b) for a, b in zip(self._elements, other._elements)))

    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    def __hash__(self):
        return hash((self._numRow, self._numCol, tuple(_key(v) for v in self._elements)))

    def __repr__(self):
        rows = []
        for j in range(self._numRow):
            values = [repr(_value(v)) for v in self._elements[j*self._numCol:(j+1)*self._numCol]]
            rows.append('[' + ', '.join(values) + ']')
        return 'Matrix([' + ',\n        '.join(rows) + '])'
