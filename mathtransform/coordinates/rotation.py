# Copyright European Space Agency, 2013

"""
Rotations of the sphere which move a given point to the south or north pole,
as used by rotated-pole grids of climate models.

The kernel :class:`PoleRotation` works on (λ, φ) in radians and rotates the
sphere around the y axis. The longitude of the pole and the axis angle are
applied by the normalization and denormalization steps.
"""

from math import sin, cos, atan2, asin, sqrt, radians, nan

import astropy.units as u
import numpy as np
from astropy.coordinates import Angle

from mathtransform.formulas import bits, strictEquals, epsilonEqual, NORTH_POLE_AXIS_ANGLE_SIGN,\
    ANGULAR_TOLERANCE
from mathtransform.matrix import Matrix, DoubleDouble
from mathtransform.transform.base import AbstractMathTransform, ComparisonMode
from mathtransform.transform.concatenated import ConcatenatedTransform
from mathtransform.transform.contextual import ContextualParameters, ParameterDescriptorGroup
from mathtransform.transform.linear import create as createLinear
from mathtransform.coordinates.transform import rotatePole
from mathtransform.util.decorators import preset_lazy, inherit_docs

SOUTH_POLE_PARAMETERS = ParameterDescriptorGroup('Rotated south pole',
    ('grid_south_pole_latitude', 'grid_south_pole_longitude', 'grid_south_pole_angle'))

NORTH_POLE_PARAMETERS = ParameterDescriptorGroup('Rotated north pole',
    ('grid_north_pole_latitude', 'grid_north_pole_longitude', 'north_pole_grid_longitude'))

def _wrapLongitude(lon):
    """
    Wraps a longitude in degrees to the [-180, 180) range.
    """
    return float(Angle(lon, u.deg).wrap_at(180*u.deg).degree)

def _southPoleInverse(forward, name):
    if name == 'grid_south_pole_latitude':
        return forward['grid_south_pole_latitude']
    if name == 'grid_south_pole_longitude':
        return _wrapLongitude(forward['grid_south_pole_angle'] + 180)
    if name == 'grid_south_pole_angle':
        return _wrapLongitude(forward['grid_south_pole_longitude'] + 180)
    return None

def _northPoleInverse(forward, name):
    if name == 'grid_north_pole_latitude':
        return forward['grid_north_pole_latitude']
    if name == 'grid_north_pole_longitude':
        return forward['north_pole_grid_longitude'] * NORTH_POLE_AXIS_ANGLE_SIGN
    if name == 'north_pole_grid_longitude':
        return forward['grid_north_pole_longitude'] * NORTH_POLE_AXIS_ANGLE_SIGN
    return None

_INVERSE_MAPPERS = {SOUTH_POLE_PARAMETERS: _southPoleInverse,
                    NORTH_POLE_PARAMETERS: _northPoleInverse}

def _longitudeShift(sign):
    """
    Returns the linear transform adding ±π to the longitude of (λ, φ).
    """
    m = Matrix.identity(3)
    m.setElement(0, 2, DoubleDouble.PI if sign > 0 else -DoubleDouble.PI)
    return createLinear(m)

@inherit_docs
class PoleRotation(AbstractMathTransform):
    """
    Rotation of (λ, φ) coordinates in radians around the y axis of the sphere.
    The rotation matrix applied to unit vectors has the rows
    ``(sin φp, 0, -cos φp)``, ``(0, 1, 0)`` and ``(cos φp, 0, sin φp)``.
    """
    def __init__(self, sinPole, cosPole, context=None, inputShift=0.0):
        """
        :param float sinPole: sine of the rotation latitude
        :param float cosPole: cosine of the rotation latitude
        :param ContextualParameters context: the parameters, for diagnostics only
        :param float inputShift: the longitude in degrees subtracted from the input
            longitudes before this kernel; the inverse adds it back to its outputs
        """
        self._sin = float(sinPole)
        self._cos = float(cosPole)
        self._context = context
        self._inputShift = float(inputShift)
        self._rebuildDerivedState()

    def _rebuildDerivedState(self):
        s, c = self._sin, self._cos
        self._rotation = np.array([[s, 0, -c],
                                   [0, 1,  0],
                                   [c, 0,  s]])

    @staticmethod
    def rotateSouthPole(factory, latitude, longitude, angle):
        """
        Returns the transform for which the point (`longitude`, `latitude`) becomes
        the south pole of the rotated sphere, followed by a rotation of `angle`
        around the new polar axis. Coordinates are (longitude, latitude) in degrees.
        """
        context = ContextualParameters(SOUTH_POLE_PARAMETERS, 2, 2)
        context.setParameter('grid_south_pole_latitude', latitude, u.deg)
        context.setParameter('grid_south_pole_longitude', longitude, u.deg)
        context.setParameter('grid_south_pole_angle', angle, u.deg)
        shift = _wrapLongitude(longitude + 180)
        context.normalizeGeographicInputs(shift)
        context.denormalizeGeographicOutputs(angle)
        lat = -radians(latitude)
        kernel = PoleRotation(sin(lat), cos(lat), context, shift)
        return context.completeTransform(factory, kernel)

    @staticmethod
    def rotateNorthPole(factory, latitude, longitude, angle):
        """
        Returns the transform for which the point (`longitude`, `latitude`) becomes
        the north pole of the rotated sphere, followed by a rotation of `angle`
        around the new polar axis. The sign of `angle` is
        :data:`~mathtransform.formulas.NORTH_POLE_AXIS_ANGLE_SIGN`.
        """
        context = ContextualParameters(NORTH_POLE_PARAMETERS, 2, 2)
        context.setParameter('grid_north_pole_latitude', latitude, u.deg)
        context.setParameter('grid_north_pole_longitude', longitude, u.deg)
        context.setParameter('north_pole_grid_longitude', angle, u.deg)
        context.normalizeGeographicInputs(longitude)
        context.denormalizeGeographicOutputs(angle * NORTH_POLE_AXIS_ANGLE_SIGN)
        lat = radians(latitude)
        kernel = PoleRotation(sin(lat), cos(lat), context, longitude)
        return context.completeTransform(factory, kernel)

    @property
    def sourceDim(self):
        return 2

    @property
    def targetDim(self):
        return 2

    def getContextualParameters(self):
        return self._context

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        lon = srcPts[srcOff]
        lat = srcPts[srcOff + 1]
        s, c = self._sin, self._cos
        sinLat, cosLat = sin(lat), cos(lat)
        sinLon, cosLon = sin(lon), cos(lon)
        x = cosLat * cosLon
        y = cosLat * sinLon
        z = sinLat
        xr = s*x - c*z
        zr = c*x + s*z
        if dstPts is not None:
            dstPts[dstOff] = atan2(y, xr)
            dstPts[dstOff + 1] = asin(max(-1.0, min(1.0, zr)))
        if not derivate:
            return None
        q = xr*xr + y*y
        sq = sqrt(q)
        if sq <= ANGULAR_TOLERANCE:
            # the output is a pole of the rotated sphere
            return Matrix(2, 2, [nan] * 4)
        dxrLat = -s*sinLat*cosLon - c*cosLat
        return Matrix(2, 2, [(xr*x + s*y*y) / q,  (-xr*sinLat*sinLon - y*dxrLat) / q,
                             -c*y / sq,           (s*cosLat - c*sinLat*cosLon) / sq])

    def _transformArray(self, coords):
        lats, lons = rotatePole(coords[:, 1], coords[:, 0], self._rotation)
        return np.column_stack((lons, lats))

    def _createInverse(self):
        context = None
        if self._context is not None:
            descriptor = self._context.descriptor
            context = self._context.inverse(descriptor, _INVERSE_MAPPERS.get(descriptor))
        if abs(self._inputShift) <= 90:
            inverse = PoleRotation(self._sin, -self._cos, context)
            preset_lazy(inverse, '_inverse', self)
            return inverse
        # same rotation with the longitudes turned by half a circle,
        # keeping the longitude offset of the complete inverse below 90°
        sign = -1 if self._inputShift > 0 else 1
        steps = (_longitudeShift(1),
                 PoleRotation(self._sin, self._cos, context),
                 _longitudeShift(sign))
        inverse = ConcatenatedTransform(steps)
        preset_lazy(inverse, '_inverse', self)
        return inverse

    def _equalsSameType(self, other, mode):
        if mode is ComparisonMode.STRICT:
            return (strictEquals(self._sin, other._sin) and strictEquals(self._cos, other._cos) and
                    strictEquals(self._inputShift, other._inputShift))
        return epsilonEqual(self._sin, other._sin) and epsilonEqual(self._cos, other._cos)

    def _hashKey(self):
        return (bits(self._sin), bits(self._cos), bits(self._inputShift))

    def __repr__(self):
        return 'PoleRotation(sin={!r}, cos={!r})'.format(self._sin, self._cos)
