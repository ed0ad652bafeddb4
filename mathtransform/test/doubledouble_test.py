# Copyright European Space Agency, 2013

import unittest
import pickle

from mathtransform.matrix import DoubleDouble

class Test(unittest.TestCase):

    def testDecimal(self):
        d = DoubleDouble.of(0.1, decimal=True)
        self.assertEqual(d.value, 0.1)
        self.assertNotEqual(d.error, 0)
        self.assertEqual(float(d), 0.1)

        self.assertEqual(DoubleDouble.of(0.1).error, 0)
        self.assertEqual(DoubleDouble.of(0.5, decimal=True).error, 0)

    def testSum(self):
        d = DoubleDouble(1.0) + 1e-20
        self.assertEqual(d.value, 1.0)
        self.assertEqual(d.error, 1e-20)
        self.assertEqual((d - 1.0).value, 1e-20)
        self.assertEqual((1.0 - d).value, -1e-20)

    def testProduct(self):
        d = DoubleDouble.of(0.1, decimal=True) * 10
        self.assertEqual(d.value, 1.0)
        self.assertLess(abs(d.error), 1e-30)

        d = 10 * DoubleDouble.of(0.1, decimal=True)
        self.assertEqual(d.value, 1.0)

    def testDivision(self):
        third = DoubleDouble(1.0) / 3
        self.assertAlmostEqual(float(third*3), 1.0, places=15)
        self.assertLess(abs(float(third*3 - 1)), 1e-30)
        self.assertLess(abs(float(3 / DoubleDouble(3.0) - 1)), 1e-30)
        with self.assertRaises(ZeroDivisionError):
            DoubleDouble(1.0) / 0

    def testConstants(self):
        self.assertEqual(float(DoubleDouble.PI), 3.141592653589793)
        self.assertLess(abs(float(DoubleDouble.DEGREES_TO_RADIANS*180 - DoubleDouble.PI)), 1e-28)
        self.assertLess(abs(float(DoubleDouble.DEGREES_TO_RADIANS*DoubleDouble.RADIANS_TO_DEGREES - 1)), 1e-28)

    def testSqrt(self):
        s = DoubleDouble(2.0).sqrt()
        self.assertLess(abs(float(s*s - 2)), 1e-28)
        self.assertTrue(DoubleDouble(0.0).sqrt().isZero())

    def testImmutable(self):
        d = DoubleDouble(1.0)
        with self.assertRaises(AttributeError):
            d.value = 2.0

    def testEquality(self):
        self.assertEqual(DoubleDouble(2.0), 2)
        self.assertEqual(DoubleDouble(2.0), DoubleDouble.of(2))
        self.assertEqual(hash(DoubleDouble(2.0)), hash(DoubleDouble.of(2)))
        self.assertNotEqual(DoubleDouble(1.0, 1e-20), DoubleDouble(1.0))
        self.assertEqual(-DoubleDouble(1.0, 1e-20), DoubleDouble(-1.0, -1e-20))

    def testPickle(self):
        d = DoubleDouble.of(0.1, decimal=True)
        self.assertEqual(pickle.loads(pickle.dumps(d)), d)
