# Copyright European Space Agency, 2013

"""
Checks shared by the transform tests.
"""

import numpy as np
from numpy.testing import assert_allclose, assert_array_almost_equal

def numericJacobian(transform, point, step=1e-6):
    """
    Jacobian of the transform at the given point by central differences.
    """
    point = np.asarray(point, dtype=float)
    jacobian = np.empty((transform.targetDim, transform.sourceDim))
    for i in range(transform.sourceDim):
        delta = np.zeros(len(point))
        delta[i] = step
        jacobian[:, i] = (transform.transform(point + delta) - transform.transform(point - delta)) / (2*step)
    return jacobian

def assertDerivative(transform, point, step=1e-6, rtol=1e-6, atol=1e-8):
    analytic = transform.derivative(point).toArray()
    assert_allclose(analytic, numericJacobian(transform, point, step), rtol=rtol, atol=atol)

def assertInverse(transform, points, decimal=9):
    """
    Checks that the inverse transform gives back the original points.
    """
    inverse = transform.inverse()
    for p in np.asarray(points, dtype=float):
        assert_array_almost_equal(inverse.transform(transform.transform(p)), p, decimal)

def assertConsistent(transform, points, rtol=1e-12, atol=1e-12):
    """
    Checks that single point, array and flat buffer evaluation give the same results.
    """
    points = np.asarray(points, dtype=float)
    expected = np.array([transform.transform(p) for p in points])
    assert_allclose(transform.transformArray(points), expected, rtol=rtol, atol=atol)

    flat = points.ravel().copy()
    out = np.empty(len(points)*transform.targetDim)
    transform.transformPoints(flat, 0, out, 0, len(points))
    assert_allclose(out.reshape(len(points), transform.targetDim), expected, rtol=rtol, atol=atol)

def wrapLongitude(lon):
    return (np.asarray(lon) + 180) % 360 - 180
