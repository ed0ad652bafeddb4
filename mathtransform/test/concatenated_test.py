# Copyright European Space Agency, 2013

import unittest
import numpy as np
from numpy.testing import assert_array_almost_equal, assert_array_equal

from mathtransform.errors import MismatchedDimensionError, NoninvertibleTransformError
from mathtransform.transform import concatenate, identity, linear, scale, translation,\
    getSteps, getFirstStep, getLastStep
from mathtransform.transform.base import AbstractMathTransform
from mathtransform.transform.concatenated import ConcatenatedTransform
from mathtransform.transform.linear import AffineTransform2D, IdentityTransform
from mathtransform.coordinates.cartesian import PolarToCartesian

from transformtestcase import assertDerivative, assertInverse, assertConsistent

class _Failing(AbstractMathTransform):
    """
    2-D transform whose simplification rule always fails.
    """
    def __init__(self, error=None):
        self._error = error or ZeroDivisionError('no simplification')

    @property
    def sourceDim(self):
        return 2

    @property
    def targetDim(self):
        return 2

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        if dstPts is not None:
            dstPts[dstOff] = srcPts[srcOff] + 1
            dstPts[dstOff + 1] = srcPts[srcOff + 1]
        return None

    def _tryConcatenate(self, other, applyOtherFirst, factory):
        raise self._error

class Test(unittest.TestCase):

    def testAssociative(self):
        a = scale(2, 3)
        b = PolarToCartesian.INSTANCE
        c = translation(1, -1)
        left = concatenate(concatenate(a, b), c)
        right = concatenate(a, concatenate(b, c))
        for p in [[1, 0.5], [2, -1], [0.3, 3]]:
            assert_array_almost_equal(left.transform(p), right.transform(p))

    def testFlatten(self):
        a = scale(2, 3)
        b = PolarToCartesian.INSTANCE
        c = translation(1, -1)
        t = concatenate(concatenate(a, b), c)
        self.assertIsInstance(t, ConcatenatedTransform)
        self.assertEqual(len(getSteps(t)), 3)
        self.assertIs(getFirstStep(t), a)
        self.assertIs(getSteps(t)[1], b)
        self.assertIs(getLastStep(t), c)

        p = np.array([1, 0.5])
        assert_array_almost_equal(t.transform(p), c.transform(b.transform(a.transform(p))))

    def testSingleStep(self):
        b = PolarToCartesian.INSTANCE
        self.assertIs(concatenate(b), b)
        self.assertIs(concatenate(identity(2), b), b)
        self.assertIs(concatenate(b, identity(2)), b)
        self.assertEqual(getSteps(b), [b])

    def testLinearMerge(self):
        t = concatenate(scale(2, 2), translation(1, 1))
        self.assertIsInstance(t, AffineTransform2D)
        assert_array_equal(t.transform([1, 2]), [3, 5])

        t = concatenate(scale(2, 4), scale(0.5, 0.25))
        self.assertIs(t, IdentityTransform.create(2))

    def testInverseCancels(self):
        b = PolarToCartesian.INSTANCE
        t = concatenate(b, b.inverse())
        self.assertTrue(t.isIdentity())
        self.assertEqual(t.sourceDim, 2)

        t = concatenate(scale(2, 4), b, b.inverse(), scale(0.5, 0.25))
        self.assertTrue(t.isIdentity())

    def testMismatchedDimension(self):
        with self.assertRaises(MismatchedDimensionError):
            concatenate(scale(2, 3), translation(1, 2, 3))
        with self.assertRaises(ValueError):
            concatenate(scale(2, 3), translation(1, 2, 3))
        with self.assertRaises(ValueError):
            concatenate()

    def testInverse(self):
        t = concatenate(scale(2, 3), PolarToCartesian.INSTANCE, translation(1, -1))
        assertInverse(t, [[1, 0.5], [2, -1]])
        self.assertIs(t.inverse().inverse(), t)

        lossy = concatenate(PolarToCartesian.INSTANCE, linear([[1, 0, 0], [0, 0, 1]]))
        with self.assertRaises(NoninvertibleTransformError):
            lossy.inverse()

    def testDerivative(self):
        t = concatenate(scale(2, 3), PolarToCartesian.INSTANCE, translation(1, -1))
        assertDerivative(t, [1, 0.2])
        assertDerivative(t, [0.5, -0.4])

        derivative, point = t.derivativeAndTransform([1, 0.2])
        assert_array_almost_equal(point, t.transform([1, 0.2]))
        assert_array_almost_equal(derivative.toArray(), t.derivative([1, 0.2]).toArray())

    def testBatch(self):
        t = concatenate(scale(2, 3), PolarToCartesian.INSTANCE, translation(1, -1))
        assertConsistent(t, np.random.rand(20, 2))

    def testFailingSimplification(self):
        f = _Failing()
        with self.assertLogs(level='DEBUG') as cm:
            t = concatenate(scale(2, 2), f)
        self.assertTrue(any('Could not simplify' in line for line in cm.output))
        self.assertEqual(len(getSteps(t)), 2)
        assert_array_equal(t.transform([1, 1]), [3, 2])

    def testSimplificationValueError(self):
        f = _Failing(ValueError('Illegal base'))
        with self.assertLogs(level='DEBUG') as cm:
            t = concatenate(f, scale(2, 2))
        self.assertTrue(any('Illegal base' in line for line in cm.output))
        self.assertEqual(len(getSteps(t)), 2)
        assert_array_equal(t.transform([1, 1]), [4, 2])
