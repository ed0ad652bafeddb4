# Copyright European Space Agency, 2013

import unittest
from unittest import mock
import numpy as np
from numpy.testing import assert_array_almost_equal, assert_allclose

from mathtransform.errors import TransformError, MismatchedDimensionError
from mathtransform.transform import linear
from mathtransform.transform.factory import MathTransformFactory
from mathtransform.coordinates.interpolated import ArrayDatumShiftGrid, InterpolatedTransform

from transformtestcase import assertDerivative, assertInverse, assertConsistent

def _offsets(dims=2):
    gy, gx = np.mgrid[0:3, 0:3]
    offsets = [0.01*gx + 0.02*gy, np.full((3, 3), 0.03)]
    if dims == 3:
        offsets.append(np.full((3, 3), 5.0))
    return np.array(offsets)

def _grid(dims=2, coordinateToGrid=None):
    if coordinateToGrid is None:
        coordinateToGrid = linear(np.diag([0.2, 0.2, 1]))
    return ArrayDatumShiftGrid(coordinateToGrid, _offsets(dims), 1e-10)

class Test(unittest.TestCase):

    def testGrid(self):
        grid = _grid()
        self.assertEqual(grid.gridSize, (3, 3))
        self.assertEqual(grid.translationDimensions, 2)
        self.assertAlmostEqual(grid.getCellValue(0, 2, 1), 0.04)
        assert_array_almost_equal(grid.interpolateInCell(0.8, 1.2), [0.032, 0.03])
        # clamped to the border
        assert_array_almost_equal(grid.interpolateInCell(4, 1), [0.04, 0.03])
        assert_array_almost_equal(grid.interpolateInCell(-1, -1), [0, 0.03])
        assert_array_almost_equal(grid.derivativeInCell(0.8, 1.2), [[0.01, 0.02], [0, 0]])
        assert_array_almost_equal(grid.derivativeInCell(4, 1.2), [[0, 0.02], [0, 0]])
        assert_array_almost_equal(grid.interpolateInCells(np.array([0.8, 4, -1]), np.array([1.2, 1, -1])),
                                  [[0.032, 0.03], [0.04, 0.03], [0, 0.03]])

    def testTransform(self):
        t = InterpolatedTransform(_grid())
        assert_array_almost_equal(t.transform([4, 6]), [4.032, 6.03])
        assert_array_almost_equal(t.transform([20, 5]), [20.04, 5.03])
        assert_array_almost_equal(t.derivative([4, 6]).toArray(), [[1.002, 0.004], [0, 1]])
        assertDerivative(t, [4, 6])
        assertDerivative(t, [7.3, 2.1])

    def testBatch(self):
        t = InterpolatedTransform(_grid())
        points = np.vstack((np.random.rand(20, 2) * 10, [[20, 5], [-3, 4], [10, 10]]))
        assertConsistent(t, points)

    def testInverse(self):
        t = InterpolatedTransform(_grid())
        inverse = t.inverse()
        assert_allclose(inverse.transform([4.032, 6.03]), [4, 6], atol=1e-9)
        assertInverse(t, [[4, 6], [1, 9], [7.3, 2.1]])
        self.assertIs(inverse.inverse(), t)
        assertDerivative(inverse, [4.032, 6.03])

    def testNoConvergence(self):
        t = InterpolatedTransform(_grid())
        with mock.patch('mathtransform.coordinates.interpolated.MAXIMUM_ITERATIONS', 0):
            with self.assertLogs(level='WARNING') as cm:
                with self.assertRaises(TransformError):
                    t.inverse().transform([4.032, 6.03])
        self.assertTrue(any('No convergence' in line for line in cm.output))

    def testNonDiagonal(self):
        toGrid = linear([[0.2, 0.01, 0], [0, 0.2, 0], [0, 0, 1]])
        grid = _grid(coordinateToGrid=toGrid)
        t = InterpolatedTransform(grid)
        gx, gy = toGrid.transform([4, 6])
        assert_array_almost_equal(t.transform([4, 6]), np.array([4, 6]) + grid.interpolateInCell(gx, gy))
        assertDerivative(t, [4, 6])
        assertConsistent(t, np.random.rand(10, 2) * 10)
        assertInverse(t, [[4, 6], [1, 9]])

    def testProjective(self):
        toGrid = linear([[0.2, 0, 0], [0, 0.2, 0], [0.01, 0.02, 1]])
        self.assertFalse(toGrid.getMatrix().isAffine())
        t = InterpolatedTransform(_grid(coordinateToGrid=toGrid))
        # the conversion to grid indices has a different derivative at each point
        assertDerivative(t, [4, 6])
        assertDerivative(t, [8, 1])
        assertConsistent(t, np.random.rand(10, 2) * 10)
        assertInverse(t, [[4, 6], [8, 1]])
        assertDerivative(t.inverse(), t.transform([4, 6]))

    def testThreeDimensions(self):
        t = InterpolatedTransform(_grid(dims=3))
        self.assertEqual(t.sourceDim, 3)
        assert_array_almost_equal(t.transform([4, 6, 1]), [4.032, 6.03, 6])
        assertInverse(t, [[4, 6, 1], [7.3, 2.1, -2]])
        assertConsistent(t, np.random.rand(10, 3) * 10)

    def testInvalidGrid(self):
        toGrid = linear(np.diag([0.2, 0.2, 1]))
        with self.assertRaises(ValueError):
            ArrayDatumShiftGrid(toGrid, np.zeros((2, 1, 3)), 1e-10)
        with self.assertRaises(ValueError):
            ArrayDatumShiftGrid(toGrid, np.zeros((3, 3)), 1e-10)
        with self.assertRaises(ValueError):
            ArrayDatumShiftGrid(toGrid, np.zeros((1, 3, 3)), 1e-10)
        with self.assertRaises(ValueError):
            ArrayDatumShiftGrid(toGrid, np.zeros((2, 3, 3)), 0)
        with self.assertRaises(MismatchedDimensionError):
            ArrayDatumShiftGrid(linear(np.identity(4)), np.zeros((2, 3, 3)), 1e-10)

    def testGeodeticTransformation(self):
        factory = MathTransformFactory(caching=False)
        t = InterpolatedTransform.createGeodeticTransformation(factory, _grid())
        self.assertIsInstance(t, InterpolatedTransform)
        self.assertEqual(t.getContextualParameters()['grid_width'], 3)
        self.assertEqual(t.getContextualParameters()['cell_precision'], 1e-10)
        assert_array_almost_equal(t.transform([4, 6]), [4.032, 6.03])

    def testEquals(self):
        self.assertEqual(InterpolatedTransform(_grid()), InterpolatedTransform(_grid()))
        self.assertNotEqual(InterpolatedTransform(_grid()), InterpolatedTransform(_grid(dims=3)))
