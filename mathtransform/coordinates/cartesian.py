# Copyright European Space Agency, 2013

"""
Kernels converting between Cartesian coordinates and spherical, polar
or cylindrical coordinates.

The kernels have no parameters, each of them exists as a single shared instance
(``INSTANCE``). Angles are in radians and the axes are in the following order:

- spherical: (λ longitude, Ω spherical latitude, R radius)
- polar: (r radius, θ angle counter-clockwise from the x axis)
- cylindrical: (r, θ, z)
- Cartesian: (X, Y, Z) or (x, y)
"""

from math import sin, cos, atan2, sqrt, hypot, nan

import numpy as np

from mathtransform.matrix import Matrix
from mathtransform.transform.base import AbstractMathTransform
from mathtransform.transform.contextual import ContextualParameters, ParameterDescriptorGroup
from mathtransform.coordinates.transform import spherical_to_cartesian, cartesian_to_spherical,\
    polar_to_cartesian, cartesian_to_polar

def _undefinedDerivative(size):
    """
    Derivative at the origin or on the polar axis, where the angles are undefined.
    """
    return Matrix(size, size, [nan] * (size*size))

def _instance(name):
    return globals()[name].INSTANCE

class _CoordinateSystemConversion(AbstractMathTransform):
    """
    Base class of the parameterless kernels.
    """
    descriptor = None

    def __init__(self):
        context = ContextualParameters(self.descriptor, self.sourceDim, self.targetDim)
        context.freeze()
        self._context = context

    def getContextualParameters(self):
        return self._context

    def completeTransform(self, factory):
        """
        Returns this kernel as it would be created by the given factory.
        """
        return self._context.completeTransform(factory, self)

    def _equalsSameType(self, other, mode):
        return True

    def _hashKey(self):
        return 0

    def __reduce__(self):
        return (_instance, (type(self).__name__,))

    def __repr__(self):
        return type(self).__name__

class SphericalToCartesian(_CoordinateSystemConversion):
    """
    (λ, Ω, R) to (X, Y, Z).
    """
    descriptor = ParameterDescriptorGroup('Spherical to Cartesian', ())

    @property
    def sourceDim(self):
        return 3

    @property
    def targetDim(self):
        return 3

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        lon = srcPts[srcOff]
        lat = srcPts[srcOff + 1]
        r = srcPts[srcOff + 2]
        sinLon, cosLon = sin(lon), cos(lon)
        sinLat, cosLat = sin(lat), cos(lat)
        rcosLat = r * cosLat
        if dstPts is not None:
            dstPts[dstOff] = rcosLat * cosLon
            dstPts[dstOff + 1] = rcosLat * sinLon
            dstPts[dstOff + 2] = r * sinLat
        if not derivate:
            return None
        rsinLat = r * sinLat
        return Matrix(3, 3, [-rcosLat*sinLon, -rsinLat*cosLon, cosLat*cosLon,
                              rcosLat*cosLon, -rsinLat*sinLon, cosLat*sinLon,
                              0,               rcosLat,        sinLat])

    def _transformArray(self, coords):
        return spherical_to_cartesian(coords[:, 2], coords[:, 1], coords[:, 0], astuple=False)

    def _createInverse(self):
        return CartesianToSpherical.INSTANCE

class CartesianToSpherical(_CoordinateSystemConversion):
    """
    (X, Y, Z) to (λ, Ω, R).
    """
    descriptor = ParameterDescriptorGroup('Cartesian to spherical', ())

    @property
    def sourceDim(self):
        return 3

    @property
    def targetDim(self):
        return 3

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        x = srcPts[srcOff]
        y = srcPts[srcOff + 1]
        z = srcPts[srcOff + 2]
        p2 = x*x + y*y
        r2 = p2 + z*z
        p = sqrt(p2)
        r = sqrt(r2)
        if dstPts is not None:
            dstPts[dstOff] = atan2(y, x)
            dstPts[dstOff + 1] = atan2(z, p)
            dstPts[dstOff + 2] = r
        if not derivate:
            return None
        if p == 0:
            return _undefinedDerivative(3)
        zr2p = z / (r2 * p)
        return Matrix(3, 3, [-y/p2,      x/p2,      0,
                             -x*zr2p,   -y*zr2p,    p/r2,
                              x/r,       y/r,       z/r])

    def _transformArray(self, coords):
        r, lat, lon = cartesian_to_spherical(coords[:, 0], coords[:, 1], coords[:, 2])
        return np.column_stack((lon, lat, r))

    def _createInverse(self):
        return SphericalToCartesian.INSTANCE

class PolarToCartesian(_CoordinateSystemConversion):
    """
    (r, θ) to (x, y).
    """
    descriptor = ParameterDescriptorGroup('Polar to Cartesian', ())

    @property
    def sourceDim(self):
        return 2

    @property
    def targetDim(self):
        return 2

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        r = srcPts[srcOff]
        theta = srcPts[srcOff + 1]
        sinT, cosT = sin(theta), cos(theta)
        if dstPts is not None:
            dstPts[dstOff] = r * cosT
            dstPts[dstOff + 1] = r * sinT
        if not derivate:
            return None
        return Matrix(2, 2, [cosT, -r*sinT,
                             sinT,  r*cosT])

    def _transformArray(self, coords):
        x, y = polar_to_cartesian(coords[:, 0], coords[:, 1])
        return np.column_stack((x, y))

    def _createInverse(self):
        return CartesianToPolar.INSTANCE

class CartesianToPolar(_CoordinateSystemConversion):
    """
    (x, y) to (r, θ).
    """
    descriptor = ParameterDescriptorGroup('Cartesian to polar', ())

    @property
    def sourceDim(self):
        return 2

    @property
    def targetDim(self):
        return 2

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        x = srcPts[srcOff]
        y = srcPts[srcOff + 1]
        r = hypot(x, y)
        if dstPts is not None:
            dstPts[dstOff] = r
            dstPts[dstOff + 1] = atan2(y, x)
        if not derivate:
            return None
        if r == 0:
            return _undefinedDerivative(2)
        r2 = r*r
        return Matrix(2, 2, [ x/r,  y/r,
                             -y/r2, x/r2])

    def _transformArray(self, coords):
        r, theta = cartesian_to_polar(coords[:, 0], coords[:, 1])
        return np.column_stack((r, theta))

    def _createInverse(self):
        return PolarToCartesian.INSTANCE

SphericalToCartesian.INSTANCE = SphericalToCartesian()
CartesianToSpherical.INSTANCE = CartesianToSpherical()
PolarToCartesian.INSTANCE = PolarToCartesian()
CartesianToPolar.INSTANCE = CartesianToPolar()

def cylindricalToCartesian(factory):
    """
    (r, θ, z) to (x, y, z): the polar conversion with z passed through.
    """
    return factory.createPassThroughTransform(0, PolarToCartesian.INSTANCE, 1)

def cartesianToCylindrical(factory):
    return factory.createPassThroughTransform(0, CartesianToPolar.INSTANCE, 1)
