# Copyright European Space Agency, 2013

import unittest
import pickle
import numpy as np
from numpy.testing import assert_array_almost_equal

from mathtransform.errors import MismatchedDimensionError
from mathtransform.geometry import Envelope
from mathtransform.transform import specialize, translation, scale
from mathtransform.transform.specializable import SpecializableTransform

from transformtestcase import assertConsistent

class Test(unittest.TestCase):

    def setUp(self):
        self.globalTransform = translation(0.01, 0.01)
        self.outer = Envelope([0, 0], [10, 10])
        self.inner = Envelope([2, 2], [4, 4])
        self.outerTransform = translation(0.02, 0.02)
        self.innerTransform = translation(0.03, 0.03)
        # inner region given first to check that nesting does not depend on the order
        self.t = specialize(self.globalTransform, [(self.inner, self.innerTransform),
                                                   (self.outer, self.outerTransform)])

    def testTransformAt(self):
        t = self.t
        self.assertIsInstance(t, SpecializableTransform)
        self.assertIs(t.transformAt([3, 3]), self.innerTransform)
        self.assertIs(t.transformAt([6, 6]), self.outerTransform)
        self.assertIs(t.transformAt([20, 20]), self.globalTransform)
        self.assertIs(t.transformAt([4, 4]), self.innerTransform)

    def testTransform(self):
        t = self.t
        assert_array_almost_equal(t.transform([3, 3]), [3.03, 3.03])
        assert_array_almost_equal(t.transform([6, 6]), [6.02, 6.02])
        assert_array_almost_equal(t.transform([20, 20]), [20.01, 20.01])

    def testBatch(self):
        points = np.array([[3, 3], [6, 6], [20, 20], [2.5, 9], [-1, 5], [10, 10]], dtype=float)
        assertConsistent(self.t, points)
        assert_array_almost_equal(self.t.transformArray(points[:3]), [[3.03, 3.03],
                                                                      [6.02, 6.02],
                                                                      [20.01, 20.01]])

    def testInverse(self):
        inverse = self.t.inverse()
        assert_array_almost_equal(inverse.transform([3.03, 3.03]), [3, 3])
        assert_array_almost_equal(inverse.transform([6.02, 6.02]), [6, 6])
        assert_array_almost_equal(inverse.transform([20.01, 20.01]), [20, 20])
        assert_array_almost_equal(inverse.transformArray([[3.03, 3.03], [6.02, 6.02], [20.01, 20.01]]),
                                  [[3, 3], [6, 6], [20, 20]])
        self.assertIs(inverse.inverse(), self.t)

    def testTouchingRegions(self):
        left = Envelope([0, 0], [1, 1])
        right = Envelope([1, 0], [2, 1])
        t = specialize(self.globalTransform, [(left, scale(2, 2)), (right, scale(3, 3))])
        assert_array_almost_equal(t.transform([1, 0.5]), [2, 1])
        assert_array_almost_equal(t.transformArray([[1, 0.5]]), [[2, 1]])

    def testEmpty(self):
        self.assertIs(specialize(self.globalTransform, {}), self.globalTransform)
        self.assertIs(specialize(self.globalTransform, []), self.globalTransform)

    def testMapping(self):
        t = specialize(self.globalTransform, {self.outer: self.outerTransform})
        assert_array_almost_equal(t.transform([6, 6]), [6.02, 6.02])

    def testInvalidRegions(self):
        with self.assertRaises(ValueError):
            specialize(self.globalTransform, [(self.outer, self.outerTransform),
                                              (Envelope([5, 5], [15, 15]), self.innerTransform)])
        with self.assertRaises(ValueError):
            specialize(self.globalTransform, [(self.outer, self.outerTransform),
                                              (Envelope([0, 0], [10, 10]), self.innerTransform)])
        with self.assertRaises(MismatchedDimensionError):
            specialize(self.globalTransform, [(Envelope([0, 0, 0], [1, 1, 1]), self.innerTransform)])
        with self.assertRaises(MismatchedDimensionError):
            specialize(self.globalTransform, [(self.outer, translation(1, 1, 1))])
        # a region of zero width can not be placed in the region tree
        with self.assertRaises(ValueError):
            specialize(self.globalTransform, [(self.outer, self.outerTransform),
                                              (Envelope([2, 2], [2, 4]), self.innerTransform)])
        self.assertTrue(Envelope([2, 2], [2, 4]).isEmpty())
        self.assertFalse(self.inner.isEmpty())

    def testEquals(self):
        other = specialize(translation(0.01, 0.01), [(Envelope([2, 2], [4, 4]), translation(0.03, 0.03)),
                                                     (Envelope([0, 0], [10, 10]), translation(0.02, 0.02))])
        self.assertEqual(self.t, other)
        self.assertEqual(hash(self.t), hash(other))
        self.assertNotEqual(self.t, specialize(self.globalTransform, [(self.inner, self.innerTransform)]))

    def testPickle(self):
        t2 = pickle.loads(pickle.dumps(self.t))
        self.assertEqual(t2, self.t)
        assert_array_almost_equal(t2.transform([3, 3]), [3.03, 3.03])
        assert_array_almost_equal(t2.inverse().transform([6.02, 6.02]), [6, 6])
