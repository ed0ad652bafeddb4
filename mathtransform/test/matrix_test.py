# Copyright European Space Agency, 2013

import unittest
import numpy as np
from numpy.testing import assert_array_almost_equal, assert_array_equal

from mathtransform.errors import MismatchedDimensionError, NoninvertibleMatrixError,\
    NoninvertibleTransformError, AlreadyInitializedError
from mathtransform.matrix import Matrix, DoubleDouble

class Test(unittest.TestCase):

    def testIdentity(self):
        m = Matrix.identity(3)
        self.assertTrue(m.isIdentity())
        self.assertTrue(m.isAffine())
        self.assertTrue(m.isSquare)

        m.setElement(0, 2, 1e-20)
        self.assertFalse(m.isIdentity())
        self.assertTrue(m.isIdentity(tolerance=1e-15))

        self.assertFalse(Matrix.diagonal(3, 2).isIdentity())

    def testElements(self):
        m = Matrix(2, 3, [1, 2, 3, 4, 5, 6])
        self.assertEqual(m.getElement(1, 2), 6)
        self.assertEqual(m.getNumber(0, 1), DoubleDouble(2.0))
        assert_array_equal(m.toArray(), [[1, 2, 3], [4, 5, 6]])
        with self.assertRaises(IndexError):
            m.getElement(2, 0)
        with self.assertRaises(MismatchedDimensionError):
            Matrix(2, 2, [1, 2, 3])

        m = Matrix.fromArray([[DoubleDouble.PI, 0], [0, 1]])
        self.assertEqual(m.getNumber(0, 0), DoubleDouble.PI)
        self.assertEqual(m.getElement(0, 0), np.pi)

    def testZeroIsNotStored(self):
        self.assertEqual(Matrix(2, 2, [0, 0, 0, 0]), Matrix(2, 2))
        self.assertEqual(Matrix(1, 1, [-0.0]), Matrix(1, 1))
        self.assertEqual(hash(Matrix(1, 1, [-0.0])), hash(Matrix(1, 1)))

    def testFreeze(self):
        m = Matrix.identity(2).freeze()
        self.assertTrue(m.isFrozen)
        with self.assertRaises(AlreadyInitializedError):
            m.setElement(0, 0, 2)
        with self.assertRaises(AlreadyInitializedError):
            m.convertBefore(0, 2, None)
        c = m.copy()
        c.setElement(0, 0, 2)
        self.assertEqual(c.getElement(0, 0), 2)
        self.assertEqual(m.getElement(0, 0), 1)

    def testMultiply(self):
        a = Matrix.fromArray([[1, 2], [3, 4]])
        b = Matrix.fromArray([[5, 6], [7, 8]])
        assert_array_equal(a.multiply(b).toArray(), [[19, 22], [43, 50]])
        with self.assertRaises(MismatchedDimensionError):
            a.multiply(Matrix(3, 1))

    def testInverse(self):
        m = Matrix.fromArray([[2, 0, 1],
                              [0, 4, 2],
                              [0, 0, 1]])
        inv = m.inverse()
        assert_array_almost_equal(inv.toArray(), [[0.5, 0, -0.5],
                                                  [0, 0.25, -0.5],
                                                  [0, 0, 1]])
        self.assertTrue(inv.isAffine())
        self.assertTrue(inv.multiply(m).isIdentity())

    def testInverseExtendedPrecision(self):
        m = Matrix.createAffine([[0.1, 0], [0, 0.1]], [0.3, 0.7])
        p = m
        for _ in range(4):
            p = p.multiply(m)
        # rounding errors of plain floats would be around 1e-16 here
        self.assertTrue(p.inverse().multiply(p).isIdentity(tolerance=1e-20))
        self.assertTrue(p.multiply(p.inverse()).isIdentity(tolerance=1e-20))

    def testSingular(self):
        m = Matrix.fromArray([[1, 2, 0],
                              [2, 4, 0],
                              [0, 0, 1]])
        with self.assertRaises(NoninvertibleMatrixError):
            m.inverse()
        with self.assertRaises(ArithmeticError):
            m.inverse()
        with self.assertRaises(NoninvertibleTransformError):
            Matrix(2, 3).inverse()

    def testNearlySingular(self):
        m = Matrix.fromArray([[1, 1, 0],
                              [1, 1 + 1e-15, 0],
                              [0, 0, 1]])
        with self.assertRaises(NoninvertibleMatrixError):
            m.inverse()

        # a small scale on one axis alone is not a singularity
        m = Matrix.fromArray([[1e-20, 0, 3],
                              [0, 1e6, 0],
                              [0, 0, 1]])
        assert_array_almost_equal(m.inverse().toArray()[1:], [[0, 1e-6, 0], [0, 0, 1]])
        self.assertAlmostEqual(m.inverse().getElement(0, 0) / 1e20, 1)

    def testConvert(self):
        m = Matrix.identity(3)
        m.convertBefore(0, 2, 5)
        assert_array_equal(m.toArray(), [[2, 0, 5],
                                         [0, 1, 0],
                                         [0, 0, 1]])
        m = Matrix.identity(3)
        m.convertAfter(1, 3, 1)
        assert_array_equal(m.toArray(), [[1, 0, 0],
                                         [0, 3, 1],
                                         [0, 0, 1]])
        with self.assertRaises(IndexError):
            m.convertAfter(2, 3, None)

    def testConvertDegrees(self):
        m = Matrix.identity(2)
        m.convertBefore(0, DoubleDouble.DEGREES_TO_RADIANS, None)
        m.convertAfter(0, DoubleDouble.RADIANS_TO_DEGREES, None)
        self.assertTrue(m.isIdentity(tolerance=1e-30))

    def testRemove(self):
        m = Matrix.fromArray([[1, 2, 3],
                              [4, 5, 6],
                              [7, 8, 9]])
        assert_array_equal(m.removeColumns(0, 1).toArray(), [[2, 3], [5, 6], [8, 9]])
        assert_array_equal(m.removeRows(1, 3).toArray(), [[1, 2, 3]])

    def testEquals(self):
        a = Matrix.fromArray([[1, 2], [0, 1]])
        b = Matrix.fromArray([[1 + 1e-15, 2], [0, 1]])
        self.assertNotEqual(a, b)
        self.assertTrue(a.equals(b))
        self.assertFalse(a.equals(b, tolerance=0))
        self.assertFalse(a.equals(Matrix.identity(3)))

        nan = float('nan')
        self.assertTrue(Matrix(1, 1, [nan]).equals(Matrix(1, 1, [nan])))
