# Copyright European Space Agency, 2013

"""
Kernels converting coordinates on an ellipsoid of revolution.

:class:`EllipsoidToRadiusTransform` adds the ellipsoid radius to spherical coordinates,
:class:`EllipsoidToCentricTransform` converts geographic (longitude, latitude, height)
to geocentric Cartesian coordinates.

Both kernels work on normalized coordinates: angles in radians and lengths
relative to an axis of the ellipsoid. Their ``createGeodeticConversion``
functions return the complete transform working in degrees and in the
units of the ellipsoid.
"""

from math import sin, cos, sqrt, pi, copysign, hypot, nan

import astropy.units as u
import numpy as np

from mathtransform.formulas import bits, strictEquals, epsilonEqual, LINEAR_TOLERANCE
from mathtransform.matrix import Matrix, DoubleDouble
from mathtransform.transform.base import AbstractMathTransform, InverseTransform, ComparisonMode
from mathtransform.transform.contextual import ContextualParameters, ParameterDescriptorGroup,\
    MatrixRole
from mathtransform.coordinates.transform import ellipsoid_radius, geodetic2Ecef, geodetic2EcefZero, ecef2Geodetic
from mathtransform.util.decorators import inherit_docs

RADIUS_PARAMETERS = ParameterDescriptorGroup('Ellipsoid to radius', ('semi_major', 'semi_minor'))

CENTRIC_PARAMETERS = ParameterDescriptorGroup('Geographic/geocentric conversions',
                                              ('semi_major', 'semi_minor', 'dim'))

@inherit_docs
class EllipsoidToRadiusTransform(AbstractMathTransform):
    """
    Converts (λ, Ω) spherical coordinates to (λ, Ω, R) where R is the radius of
    the ellipsoid at spherical latitude Ω, in units of the semi-minor axis::

        R = 1 / sqrt(1 - e² cos²Ω)

    For a sphere (e² = 0) the radius is always 1.
    """
    def __init__(self, eccentricitySquared, context=None):
        self._e2 = float(eccentricitySquared)
        self._context = context

    @staticmethod
    def createGeodeticConversion(factory, ellipsoid):
        """
        Returns the transform from (longitude, latitude) in degrees to
        (longitude, latitude, radius) with the radius in the axis unit of `ellipsoid`.

        :param factory: :class:`~mathtransform.transform.factory.MathTransformFactory`
        :param ellipsoid: :class:`~mathtransform.coordinates.geodesic.Ellipsoid`
        """
        context = ContextualParameters(RADIUS_PARAMETERS, 2, 3)
        context.setParameter('semi_major', ellipsoid.semiMajorAxis, ellipsoid.unit)
        context.setParameter('semi_minor', ellipsoid.semiMinorAxis, ellipsoid.unit)
        context.normalizeGeographicInputs(0)
        denormalize = context.denormalizeGeographicOutputs(0)
        denormalize.convertAfter(2, DoubleDouble.of(ellipsoid.semiMinorAxis, decimal=True), None)
        kernel = EllipsoidToRadiusTransform(ellipsoid.eccentricitySquared, context)
        return context.completeTransform(factory, kernel)

    @property
    def sourceDim(self):
        return 2

    @property
    def targetDim(self):
        return 3

    @property
    def eccentricitySquared(self):
        return self._e2

    def getContextualParameters(self):
        return self._context

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        lon = srcPts[srcOff]
        lat = srcPts[srcOff + 1]
        cosLat = cos(lat)
        r = sqrt(1 - self._e2 * cosLat*cosLat)
        if dstPts is not None:
            dstPts[dstOff] = lon
            dstPts[dstOff + 1] = lat
            dstPts[dstOff + 2] = 1 / r
        if not derivate:
            return None
        return Matrix(3, 2, [1, 0,
                             0, 1,
                             0, -self._e2 * cosLat * sin(lat) / (r*r*r)])

    def _transformArray(self, coords):
        out = np.empty((len(coords), 3))
        out[:, :2] = coords
        out[:, 2] = ellipsoid_radius(coords[:, 1], self._e2)
        return out

    def _createInverse(self):
        return _RadiusInverse(self)

    def _equalsSameType(self, other, mode):
        if mode is ComparisonMode.STRICT:
            return strictEquals(self._e2, other._e2)
        return epsilonEqual(self._e2, other._e2)

    def _hashKey(self):
        return bits(self._e2)

    def __repr__(self):
        return 'EllipsoidToRadiusTransform(e2={!r})'.format(self._e2)

class _RadiusInverse(InverseTransform):
    """
    Drops the radius. This is a linear operation, but the inverse of this
    transform must be the non-linear kernel.
    """
    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        if dstPts is not None:
            lon = srcPts[srcOff]
            lat = srcPts[srcOff + 1]
            dstPts[dstOff] = lon
            dstPts[dstOff + 1] = lat
        if derivate:
            return Matrix(2, 3, [1, 0, 0,
                                 0, 1, 0])
        return None

    def _transformArray(self, coords):
        return coords[:, :2].copy()

@inherit_docs
class EllipsoidToCentricTransform(AbstractMathTransform):
    """
    Converts geographic (λ, φ, h) coordinates to geocentric (X, Y, Z) coordinates
    on an ellipsoid with a semi-major axis of 1. The height h is relative to the
    semi-major axis. If the transform is created without height, the input is
    (λ, φ) and the height is 0.
    """
    def __init__(self, eccentricitySquared, withHeight=True, context=None):
        self._e2 = float(eccentricitySquared)
        self._withHeight = bool(withHeight)
        self._context = context
        self._rebuildDerivedState()

    def _rebuildDerivedState(self):
        self._axisRatio = sqrt(1 - self._e2)

    @staticmethod
    def createGeodeticConversion(factory, ellipsoid, withHeight=True):
        """
        Returns the transform from (longitude, latitude, height) in degrees and
        metres to geocentric (X, Y, Z) coordinates in metres.

        :param factory: :class:`~mathtransform.transform.factory.MathTransformFactory`
        :param ellipsoid: :class:`~mathtransform.coordinates.geodesic.Ellipsoid`
        :param bool withHeight: False if the source coordinates have no height
        """
        ellipsoid = ellipsoid.inUnit(u.m)
        a = DoubleDouble.of(ellipsoid.semiMajorAxis, decimal=True)
        srcDim = 3 if withHeight else 2
        context = ContextualParameters(CENTRIC_PARAMETERS, srcDim, 3)
        context.setParameter('semi_major', ellipsoid.semiMajorAxis, u.m)
        context.setParameter('semi_minor', ellipsoid.semiMinorAxis, u.m)
        context.setParameter('dim', srcDim)
        normalize = context.normalizeGeographicInputs(0)
        if withHeight:
            normalize.convertBefore(2, a.inverse(), None)
        denormalize = context.getMatrix(MatrixRole.DENORMALIZATION)
        for i in range(3):
            denormalize.convertAfter(i, a, None)
        kernel = EllipsoidToCentricTransform(ellipsoid.eccentricitySquared, withHeight, context)
        return context.completeTransform(factory, kernel)

    @property
    def sourceDim(self):
        return 3 if self._withHeight else 2

    @property
    def targetDim(self):
        return 3

    @property
    def eccentricitySquared(self):
        return self._e2

    @property
    def withHeight(self):
        return self._withHeight

    def getContextualParameters(self):
        return self._context

    def _jacobian(self, lon, lat, h):
        e2 = self._e2
        sinLat, cosLat = sin(lat), cos(lat)
        sinLon, cosLon = sin(lon), cos(lon)
        nu = 1 / sqrt(1 - e2*sinLat*sinLat)
        r = (nu + h) * cosLat
        sdLat = nu*(1 - e2)*nu*nu + h
        return np.array([[-r*sinLon, -sdLat*sinLat*cosLon, cosLat*cosLon],
                         [ r*cosLon, -sdLat*sinLat*sinLon, cosLat*sinLon],
                         [        0,  sdLat*cosLat,        sinLat]])

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        lon = srcPts[srcOff]
        lat = srcPts[srcOff + 1]
        h = srcPts[srcOff + 2] if self._withHeight else 0.0
        if dstPts is not None:
            e2 = self._e2
            sinLat, cosLat = sin(lat), cos(lat)
            nu = 1 / sqrt(1 - e2*sinLat*sinLat)
            r = (nu + h) * cosLat
            dstPts[dstOff] = r * cos(lon)
            dstPts[dstOff + 1] = r * sin(lon)
            dstPts[dstOff + 2] = (nu*(1 - e2) + h) * sinLat
        if not derivate:
            return None
        jacobian = self._jacobian(lon, lat, h)
        if not self._withHeight:
            jacobian = jacobian[:, :2]
        return Matrix.fromArray(jacobian)

    def _transformArray(self, coords):
        if self._withHeight:
            x, y, z = geodetic2Ecef(coords[:, 1], coords[:, 0], coords[:, 2], 1.0, self._axisRatio)
        else:
            x, y, z = geodetic2EcefZero(coords[:, 1], coords[:, 0], 1.0, self._axisRatio)
        return np.column_stack((x, y, z))

    def _createInverse(self):
        return _CentricInverse(self)

    def _equalsSameType(self, other, mode):
        if self._withHeight != other._withHeight:
            return False
        if mode is ComparisonMode.STRICT:
            return strictEquals(self._e2, other._e2)
        return epsilonEqual(self._e2, other._e2)

    def _hashKey(self):
        return (bits(self._e2), self._withHeight)

    def __repr__(self):
        return 'EllipsoidToCentricTransform(e2={!r}, withHeight={})'.format(self._e2, self._withHeight)

class _CentricInverse(InverseTransform):
    """
    Converts geocentric coordinates back to geographic coordinates
    with the method of Bowring (1985).
    """
    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        forward = self._forward
        x = srcPts[srcOff]
        y = srcPts[srcOff + 1]
        z = srcPts[srcOff + 2]
        b = forward._axisRatio
        onAxis = hypot(x, y) <= LINEAR_TOLERANCE
        if onAxis:
            lat, lon, h = copysign(pi/2, z), 0.0, abs(z) - b
        else:
            lat, lon, h = (float(v) for v in ecef2Geodetic(x, y, z, 1.0, b, with_height=True))
        if dstPts is not None:
            dstPts[dstOff] = lon
            dstPts[dstOff + 1] = lat
            if forward._withHeight:
                dstPts[dstOff + 2] = h
        if not derivate:
            return None
        if onAxis:
            # the longitude is undefined on the polar axis
            return Matrix(forward.sourceDim, 3, [nan] * (forward.sourceDim*3))
        jacobian = np.linalg.inv(forward._jacobian(lon, lat, h))
        if not forward._withHeight:
            jacobian = jacobian[:2]
        return Matrix.fromArray(jacobian)

    def _transformArray(self, coords):
        forward = self._forward
        x, y, z = coords[:, 0], coords[:, 1], coords[:, 2]
        b = forward._axisRatio
        with np.errstate(invalid='ignore', divide='ignore'):
            lat, lon, h = ecef2Geodetic(x, y, z, 1.0, b, with_height=True)
        poles = np.hypot(x, y) <= LINEAR_TOLERANCE
        if poles.any():
            lat[poles] = np.copysign(pi/2, z[poles])
            lon[poles] = 0
            h[poles] = np.abs(z[poles]) - b
        if forward._withHeight:
            return np.column_stack((lon, lat, h))
        return np.column_stack((lon, lat))
