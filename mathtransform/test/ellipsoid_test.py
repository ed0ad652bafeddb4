# Copyright European Space Agency, 2013

import unittest
import math
import pickle
import numpy as np
from numpy.testing import assert_array_almost_equal, assert_allclose

import astropy.units as u

from mathtransform.errors import IncommensurableError
from mathtransform.transform import concatenate, getSteps
from mathtransform.transform.base import ComparisonMode
from mathtransform.transform.factory import MathTransformFactory
from mathtransform.transform.linear import LinearTransform
from mathtransform.coordinates.geodesic import WGS84, Ellipsoid, wgs84A, wgs84B, wgs84F
from mathtransform.coordinates.ellipsoid import EllipsoidToRadiusTransform, EllipsoidToCentricTransform

from transformtestcase import assertDerivative, assertInverse, assertConsistent, wrapLongitude

class Test(unittest.TestCase):

    def setUp(self):
        self.factory = MathTransformFactory(caching=False)

    def testRadiusKernel(self):
        sphere = EllipsoidToRadiusTransform(0.0)
        assert_array_almost_equal(sphere.transform([0.3, 0.5]), [0.3, 0.5, 1])

        kernel = EllipsoidToRadiusTransform(WGS84.eccentricitySquared)
        self.assertAlmostEqual(kernel.transform([0, 0])[2], 1/math.sqrt(1 - WGS84.eccentricitySquared), 14)
        self.assertAlmostEqual(kernel.transform([0, 0])[2], 1.003364, 6)
        self.assertEqual(kernel.transform([0, math.pi/2])[2], 1.0)

        assertDerivative(kernel, [0.2, 0.7])
        assertDerivative(kernel, [-1, -0.1])
        assertConsistent(kernel, np.random.rand(10, 2))

    def testRadiusInverse(self):
        kernel = EllipsoidToRadiusTransform(WGS84.eccentricitySquared)
        inverse = kernel.inverse()
        self.assertNotIsInstance(inverse, LinearTransform)
        self.assertIs(inverse.inverse(), kernel)
        assertInverse(kernel, [[0.2, 0.7], [-1, -0.1]])
        assertConsistent(inverse, np.random.rand(10, 3))

        t = concatenate(kernel, inverse)
        self.assertTrue(t.isIdentity())
        self.assertEqual(t.sourceDim, 2)
        # dropping the radius first loses information
        t = concatenate(inverse, kernel)
        self.assertEqual(len(getSteps(t)), 2)

    def testRadiusEquals(self):
        a = EllipsoidToRadiusTransform(0.1)
        self.assertEqual(a, EllipsoidToRadiusTransform(0.1))
        self.assertNotEqual(a, EllipsoidToRadiusTransform(0.1 + 1e-15))
        self.assertTrue(a.equals(EllipsoidToRadiusTransform(0.1 + 1e-15), ComparisonMode.APPROXIMATE))

    def testRadiusConversion(self):
        t = EllipsoidToRadiusTransform.createGeodeticConversion(self.factory, WGS84)
        assert_allclose(t.transform([10, 0]), [10, 0, wgs84A], rtol=1e-12)
        assert_allclose(t.transform([10, 90]), [10, 90, wgs84B], rtol=1e-12)
        self.assertIsNotNone(t.getContextualParameters())
        self.assertEqual(t.getContextualParameters()['semi_major'], wgs84A)

        km = Ellipsoid('WGS 84 (km)', wgs84A/1000, wgs84B/1000, u.km)
        t = EllipsoidToRadiusTransform.createGeodeticConversion(self.factory, km)
        assert_allclose(t.transform([0, 0]), [0, 0, wgs84A/1000], rtol=1e-12)

    def testCentricKernel(self):
        kernel = EllipsoidToCentricTransform(WGS84.eccentricitySquared)
        assert_array_almost_equal(kernel.transform([0, 0, 0]), [1, 0, 0])
        assert_array_almost_equal(kernel.transform([0, math.pi/2, 0]), [0, 0, wgs84B/wgs84A])
        assertDerivative(kernel, [0.3, 0.6, 0.01])
        assertDerivative(kernel.inverse(), [0.6, 0.5, 0.62], rtol=1e-5)
        assertConsistent(kernel, np.random.rand(10, 3), rtol=1e-10, atol=1e-12)
        assertConsistent(kernel.inverse(), np.random.rand(10, 3) + 0.1, rtol=1e-10, atol=1e-12)

        noHeight = EllipsoidToCentricTransform(WGS84.eccentricitySquared, withHeight=False)
        self.assertEqual(noHeight.sourceDim, 2)
        assert_array_almost_equal(noHeight.transform([0.3, 0.6]), kernel.transform([0.3, 0.6, 0]))
        assertDerivative(noHeight, [0.3, 0.6])
        self.assertNotEqual(noHeight, kernel)

    def testCentricConversion(self):
        t = EllipsoidToCentricTransform.createGeodeticConversion(self.factory, WGS84)
        assert_allclose(t.transform([0, 0, 0]), [wgs84A, 0, 0], atol=1e-6)
        assert_allclose(t.transform([0, 90, 0]), [0, 0, wgs84B], atol=1e-6)
        assert_allclose(t.transform([90, 0, 100]), [0, wgs84A + 100, 0], atol=1e-6)

        t = EllipsoidToCentricTransform.createGeodeticConversion(self.factory, WGS84, withHeight=False)
        self.assertEqual(t.sourceDim, 2)
        assert_allclose(t.transform([0, 0]), [wgs84A, 0, 0], atol=1e-6)

    def testCentricRoundTrip(self):
        t = EllipsoidToCentricTransform.createGeodeticConversion(self.factory, WGS84)
        inverse = t.inverse()
        points = np.array([[10, 45, 100],
                           [-120, -30, 5000],
                           [170, 80, -50],
                           [0, 0, 0]], dtype=float)
        for p in points:
            r = inverse.transform(t.transform(p))
            assert_allclose(wrapLongitude(r[0]), p[0], atol=1e-6)
            assert_allclose(r[1], p[1], atol=1e-6)
            assert_allclose(r[2], p[2], atol=1e-3)

        r = inverse.transformArray(t.transformArray(points))
        assert_allclose(r[:, :2], points[:, :2], atol=1e-6)
        assert_allclose(r[:, 2], points[:, 2], atol=1e-3)

    def testCentricPole(self):
        t = EllipsoidToCentricTransform.createGeodeticConversion(self.factory, WGS84)
        inverse = t.inverse()
        r = inverse.transform([0, 0, wgs84B + 10])
        assert_allclose(r, [0, 90, 10], atol=1e-6)
        r = inverse.transformArray([[0, 0, -wgs84B], [wgs84A, 0, 0]])
        assert_allclose(r, [[0, -90, 0], [0, 0, 0]], atol=1e-6)

        # within the linear tolerance of the polar axis
        near = [1e-6, 1e-6, wgs84B + 10]
        self.assertEqual(inverse.transform(near)[0], 0)
        assert_allclose(inverse.transform(near), [0, 90, 10], atol=1e-6)
        assert_allclose(inverse.transformArray([near]), [[0, 90, 10]], atol=1e-6)

        kernel = EllipsoidToCentricTransform(WGS84.eccentricitySquared)
        self.assertTrue(np.isnan(kernel.inverse().derivative([1e-13, 0, 0.99]).toArray()).all())
        self.assertFalse(kernel.inverse().derivative([1e-3, 0, 0.99]).hasNaN())

    def testEllipsoid(self):
        self.assertAlmostEqual(WGS84.flattening, wgs84F, 15)
        e = Ellipsoid.fromFlattening('WGS 84', wgs84A, wgs84F)
        assert_allclose(e.semiMinorAxis, wgs84B, rtol=1e-15)
        assert_allclose(e.eccentricitySquared, wgs84F*(2 - wgs84F), rtol=1e-12)

        sphere = Ellipsoid.sphere('Sphere', 6371, u.km)
        self.assertEqual(sphere.flattening, 0)
        self.assertEqual(sphere.eccentricitySquared, 0)
        self.assertEqual(sphere.inUnit(u.m).semiMajorAxis, 6371000)
        with self.assertRaises(ValueError):
            Ellipsoid('Flat', 1, 0)

    def testIncommensurable(self):
        with self.assertRaises(IncommensurableError):
            WGS84.inUnit(u.deg)

    def testPickle(self):
        kernel = EllipsoidToCentricTransform(WGS84.eccentricitySquared, withHeight=False)
        kernel.inverse()
        k2 = pickle.loads(pickle.dumps(kernel))
        self.assertEqual(k2, kernel)
        assert_array_almost_equal(k2.transform([0.3, 0.6]), kernel.transform([0.3, 0.6]))
