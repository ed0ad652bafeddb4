# Copyright European Space Agency, 2013

import unittest
import math
import numpy as np
from numpy.testing import assert_array_almost_equal, assert_array_equal

from mathtransform.errors import MismatchedDimensionError
from mathtransform.transform import passThrough, passThroughIndexed, compound, concatenate, identity,\
    linear, getSteps
from mathtransform.transform.linear import IdentityTransform, LinearTransform1D, CopyTransform,\
    ProjectiveTransform
from mathtransform.transform.passthrough import PassThroughTransform
from mathtransform.coordinates.cartesian import PolarToCartesian, CartesianToPolar
from mathtransform.coordinates.ellipsoid import EllipsoidToRadiusTransform

from transformtestcase import assertDerivative, assertInverse, assertConsistent

class Test(unittest.TestCase):

    def testTransform(self):
        t = passThrough(1, PolarToCartesian.INSTANCE, 2)
        self.assertIsInstance(t, PassThroughTransform)
        self.assertEqual(t.sourceDim, 5)
        self.assertEqual(t.getModifiedCoordinates(), [1, 2])
        x = [7, 2, math.pi/2, 8, 9]
        y = t.transform(x)
        self.assertEqual(y[0], 7)
        assert_array_almost_equal(y[1:3], PolarToCartesian.INSTANCE.transform(x[1:3]))
        assert_array_equal(y[3:], [8, 9])

    def testDimensionChange(self):
        sub = EllipsoidToRadiusTransform(0.0)
        t = passThrough(1, sub, 1)
        self.assertEqual(t.sourceDim, 4)
        self.assertEqual(t.targetDim, 5)
        assert_array_almost_equal(t.transform([1, 2, 3, 4]), [1, 2, 3, 1, 4])

    def testDerivative(self):
        t = passThrough(1, PolarToCartesian.INSTANCE, 1)
        d = t.derivative([5, 2, 0.3, 6]).toArray()
        assert_array_equal(d[0], [1, 0, 0, 0])
        assert_array_equal(d[3], [0, 0, 0, 1])
        assert_array_equal(d[1:3, [0, 3]], np.zeros((2, 2)))
        assertDerivative(t, [5, 2, 0.3, 6])

    def testInverse(self):
        t = passThrough(2, PolarToCartesian.INSTANCE, 0)
        assertInverse(t, [[1, 2, 3, 0.5], [-1, 0, 0.5, -2]])
        self.assertIs(t.inverse().inverse(), t)

    def testBatch(self):
        t = passThrough(1, PolarToCartesian.INSTANCE, 1)
        assertConsistent(t, np.random.rand(10, 4))

    def testSimpleCases(self):
        sub = PolarToCartesian.INSTANCE
        self.assertIs(passThrough(0, sub, 0), sub)
        self.assertIs(passThrough(1, identity(2), 1), IdentityTransform.create(4))

        t = passThrough(1, LinearTransform1D.create(2, 3), 1)
        self.assertIsInstance(t, ProjectiveTransform)
        assert_array_equal(t.transform([1, 1, 1]), [1, 5, 1])

        with self.assertRaises(ValueError):
            passThrough(-1, sub, 0)

    def testNested(self):
        t = passThrough(1, passThrough(1, PolarToCartesian.INSTANCE, 0), 2)
        self.assertIsInstance(t, PassThroughTransform)
        self.assertEqual(t.firstAffectedCoordinate, 2)
        self.assertEqual(t.numTrailingCoordinates, 2)
        self.assertIs(t.subTransform, PolarToCartesian.INSTANCE)

    def testAbsorbAffine(self):
        t = concatenate(passThrough(0, PolarToCartesian.INSTANCE, 1),
                        linear(np.diag([1, 2, 1, 1])))
        self.assertIsInstance(t, PassThroughTransform)
        assert_array_almost_equal(t.transform([2, math.pi/2, 5]), [0, 4, 5])

        t = concatenate(linear(np.diag([2, 1, 1, 1])),
                        passThrough(0, PolarToCartesian.INSTANCE, 1))
        self.assertIsInstance(t, PassThroughTransform)
        assert_array_almost_equal(t.transform([2, math.pi/2, 5]), [0, 4, 5])

    def testDropSubTransform(self):
        selector = linear([[1, 0, 0, 0, 0],
                           [0, 0, 0, 1, 0],
                           [0, 0, 0, 0, 1]])
        t = concatenate(passThrough(1, PolarToCartesian.INSTANCE, 1), selector)
        self.assertIsInstance(t, CopyTransform)
        assert_array_equal(t.transform([7, 2, 1, 9]), [7, 9])

    def testMergeSameSplit(self):
        t = concatenate(passThrough(1, PolarToCartesian.INSTANCE, 1),
                        passThrough(1, CartesianToPolar.INSTANCE, 1))
        self.assertTrue(t.isIdentity())

        t = concatenate(passThrough(1, PolarToCartesian.INSTANCE, 1),
                        passThrough(1, EllipsoidToRadiusTransform(0.1), 1))
        self.assertIsInstance(t, PassThroughTransform)
        self.assertEqual(len(getSteps(t.subTransform)), 2)

    def testIndexed(self):
        t = passThroughIndexed([0, 2], CartesianToPolar.INSTANCE, 3)
        y = t.transform([3, 7, 4])
        assert_array_almost_equal(y, [5, 7, math.atan2(4, 3)])
        assertInverse(t, [[3, 7, 4], [-1, 2, 0.5]])
        assertConsistent(t, np.random.rand(5, 3))

        t = passThroughIndexed([1, 2], PolarToCartesian.INSTANCE, 4)
        self.assertIsInstance(t, PassThroughTransform)
        self.assertEqual(t.firstAffectedCoordinate, 1)
        self.assertEqual(t.numTrailingCoordinates, 1)

    def testIndexedErrors(self):
        with self.assertRaises(ValueError):
            passThroughIndexed([2, 0], CartesianToPolar.INSTANCE, 3)
        with self.assertRaises(MismatchedDimensionError):
            passThroughIndexed([0, 1, 2], CartesianToPolar.INSTANCE, 3)
        with self.assertRaises(IndexError):
            passThroughIndexed([0, 3], CartesianToPolar.INSTANCE, 3)
        with self.assertRaises(MismatchedDimensionError):
            passThroughIndexed([0, 2], EllipsoidToRadiusTransform(0.1), 3)

    def testCompound(self):
        t = compound(PolarToCartesian.INSTANCE, LinearTransform1D.create(2, 1))
        assert_array_almost_equal(t.transform([2, 0, 3]), [2, 0, 7])
        assertConsistent(t, np.random.rand(5, 3))

        sub = PolarToCartesian.INSTANCE
        self.assertIs(compound(sub), sub)

        t = compound(EllipsoidToRadiusTransform(0.0), PolarToCartesian.INSTANCE)
        self.assertEqual(t.sourceDim, 4)
        self.assertEqual(t.targetDim, 5)
        assert_array_almost_equal(t.transform([1, 2, 2, 0]), [1, 2, 1, 2, 0])
