# Copyright European Space Agency, 2013

"""
This module contains fast and memory-efficient algorithms to convert
many coordinates at once between different representations.

All functions work on arrays of any shape. Most of them come in two flavours,
one based on plain numpy operations and one evaluating the whole formula
with numexpr, which avoids temporary arrays and uses multiple threads.
The numexpr variants are used unless :data:`USE_NUMEXPR` is set to False.

The transform kernels of :mod:`~mathtransform.coordinates.cartesian`,
:mod:`~mathtransform.coordinates.ellipsoid` and :mod:`~mathtransform.coordinates.rotation`
use these functions for evaluating arrays of points.
"""

import numpy as np
from numexpr import evaluate as ne

from mathtransform.coordinates.geodesic import wgs84A, wgs84B

USE_NUMEXPR = True

def _spherical_to_cartesian_np(r, lat, lon, astuple=True):
    """
    As astropy.coordinates.distances.spherical_to_cartesian but more
    optimized. lat and lon must be arrays.
    """
    # using (3,..) instead of (...,3) as shape has better memory access performance
    # x, y, and z are then each a contiguous block of memory
    res = np.empty((3,) + lat.shape, lat.dtype)
    x = res[0]
    y = res[1]
    z = res[2]
    np.cos(lat, x)
    if r is not None:
        x *= r
    y[:] = x
    x *= np.cos(lon)
    y *= np.sin(lon)
    np.sin(lat, z)
    if r is not None:
        z *= r

    if astuple:
        return x,y,z
    else:
        res = np.rollaxis(res, 0, res.ndim)
        return res

def _spherical_to_cartesian_ne(r, lat, lon, astuple=True):
    res = np.empty((3,) + lat.shape, lat.dtype)
    x = res[0]
    y = res[1]
    z = res[2]
    if r is None:
        ne('cos(lat)', out=x)
    else:
        ne('r * cos(lat)', out=x)
    y[:] = x
    ne('x * cos(lon)', out=x)
    ne('y * sin(lon)', out=y)
    if r is None:
        ne('sin(lat)', out=z)
    else:
        ne('r * sin(lat)', out=z)
    if astuple:
        return x,y,z
    else:
        res = np.rollaxis(res, 0, res.ndim)
        return res

def spherical_to_cartesian(r, lat, lon, astuple=True):
    """
    Convert spherical to cartesian coordinates. Inputs must be arrays.

    Equivalent to `astropy.coordinates.distances.spherical_to_cartesian`
    for array inputs but uses less memory and is faster.

    :type r: ndarray or None (=1)
    :param lat: spherical latitude(s) in radians
    :param lon: longitude(s) in radians
    :rtype: tuple (x,y,z) of ndarray's with shape as input
    """
    if USE_NUMEXPR:
        return _spherical_to_cartesian_ne(r, lat, lon, astuple)
    else:
        return _spherical_to_cartesian_np(r, lat, lon, astuple)

def _cartesian_to_spherical_np(x, y, z, with_radius=True):
    xsq = x*x
    ysq = y*y
    zsq = z*z

    if with_radius:
        r = xsq + ysq
        r += zsq
        np.sqrt(r, r)

    s = xsq
    s += ysq
    np.sqrt(s, s)

    lon = ysq
    np.arctan2(y, x, lon)

    lat = zsq
    np.arctan2(z, s, lat)

    if with_radius:
        return r, lat, lon
    else:
        return lat, lon

def _cartesian_to_spherical_ne(x, y, z, with_radius=True):
    if with_radius:
        xy = ne('x*x + y*y')
        r = ne('sqrt(xy + z*z)')
        lat = ne('arctan2(z, sqrt(xy))')
        lon = xy
        ne('arctan2(y, x)', out=lon)
        return r, lat, lon
    else:
        lat = ne('arctan2(z, sqrt(x*x + y*y))')
        lon = ne('arctan2(y, x)')
        return lat, lon

def cartesian_to_spherical(x, y, z, with_radius=True):
    """
    Convert cartesian to spherical coordinates. Inputs must be arrays.

    Equivalent to `astropy.coordinates.distances.cartesian_to_spherical`
    for array inputs but uses less memory and is faster.

    :rtype: tuple (r,lat,lon) or (lat,lon) of ndarray's with shape as input
    """
    if USE_NUMEXPR:
        return _cartesian_to_spherical_ne(x, y, z, with_radius)
    else:
        return _cartesian_to_spherical_np(x, y, z, with_radius)

def _polar_to_cartesian_np(r, theta):
    x = np.cos(theta)
    x *= r
    y = np.sin(theta)
    y *= r
    return x, y

def _polar_to_cartesian_ne(r, theta):
    return ne('r * cos(theta)'), ne('r * sin(theta)')

def polar_to_cartesian(r, theta):
    """
    Convert polar to cartesian coordinates.

    :param r: radius
    :param theta: angle in radians, counter-clockwise from the x axis
    :rtype: tuple (x,y)
    """
    if USE_NUMEXPR:
        return _polar_to_cartesian_ne(r, theta)
    else:
        return _polar_to_cartesian_np(r, theta)

def _cartesian_to_polar_np(x, y):
    return np.hypot(x, y), np.arctan2(y, x)

def _cartesian_to_polar_ne(x, y):
    return ne('sqrt(x*x + y*y)'), ne('arctan2(y, x)')

def cartesian_to_polar(x, y):
    """
    Convert cartesian to polar coordinates.

    :rtype: tuple (r,theta) with theta in radians
    """
    if USE_NUMEXPR:
        return _cartesian_to_polar_ne(x, y)
    else:
        return _cartesian_to_polar_np(x, y)

def _ellipsoid_radius_np(lat, e2):
    r = np.cos(lat)
    r *= r
    r *= -e2
    r += 1
    np.sqrt(r, r)
    np.reciprocal(r, r)
    return r

def _ellipsoid_radius_ne(lat, e2):
    return ne('1 / sqrt(1 - e2*cos(lat)**2)')

def ellipsoid_radius(lat, e2):
    """
    Radius of an ellipsoid of revolution with a semi-minor axis of 1
    at the given spherical latitudes.

    :param lat: spherical latitude(s) in radians
    :param e2: first eccentricity squared
    """
    if USE_NUMEXPR:
        return _ellipsoid_radius_ne(lat, e2)
    else:
        return _ellipsoid_radius_np(lat, e2)

def geodetic2Ecef(lat, lon, h, a=wgs84A, b=wgs84B):
    """
    Converts geodetic to Earth Centered, Earth Fixed coordinates.

    Parameters h, a, and b must be given in the same unit.
    The values of the return tuple then also have this unit.

    :param lat: latitude(s) in radians
    :param lon: longitude(s) in radians
    :param h: height(s)
    :param a: equatorial axis of the ellipsoid of revolution
    :param b: polar axis of the ellipsoid of revolution
    :rtype: tuple (x,y,z)
    """
    lat, lon, h = np.asarray(lat), np.asarray(lon), np.asarray(h)
    e2 = (a*a - b*b) / (a*a) # first eccentricity squared
    n = a / np.sqrt(1 - e2*np.sin(lat)**2)
    latCos = np.cos(lat)
    nh = n+h
    x = nh*latCos*np.cos(lon)
    y = nh*latCos*np.sin(lon)
    z = (n*(1-e2)+h)*np.sin(lat)
    return x,y,z

def geodetic2EcefZero(lat, lon, a=wgs84A, b=wgs84B):
    """
    Fast version of :func:`geodetic2Ecef` for `h=0`.

    :param lat: latitude(s) in radians
    :param lon: longitude(s) in radians
    :param a: equatorial axis of the ellipsoid of revolution
    :param b: polar axis of the ellipsoid of revolution
    :rtype: tuple (x,y,z)
    """
    lat, lon = np.asarray(lat), np.asarray(lon)
    e2 = (a*a - b*b) / (a*a) # first eccentricity squared
    n = a / np.sqrt(1 - e2*np.sin(lat)**2)
    latn = n*np.cos(lat)
    x = latn*np.cos(lon)
    y = latn*np.sin(lon)
    z = n*(1-e2)*np.sin(lat)
    return x,y,z

def ecef2Geodetic(x, y, z, a=wgs84A, b=wgs84B, with_height=False):
    """
    Convert ECEF to geodetic coordinates.

    This function uses the Bowring algorithm from 1985.

    The accuracy is at least 11 decimals (in degrees).
    Points on the polar axis are not supported.

    :param x,y,z: ECEF coordinates
    :param a: equatorial axis of the ellipsoid of revolution
    :param b: polar axis of the ellipsoid of revolution
    :param with_height: whether to compute the ellipsoidal height too
    :rtype: tuple (lat,lon) in radians, or (lat,lon,h) if `with_height` is True
    """
    x, y, z = np.asarray(x), np.asarray(y), np.asarray(z)
    if x.ndim > 0:
        lat, lon = _ecef2GeodeticOptimized(x, y, z, a, b)
    else:
        e2 = (a*a - b*b) / (a*a) # first eccentricity squared
        d = (a*a - b*b) / b

        p2 = np.square(x) + np.square(y)
        p = np.sqrt(p2)
        r = np.sqrt(p2 + z*z)
        tu = b*z*(1 + d/r)/(a*p)
        tu2 = tu*tu
        cu3 = (1/np.sqrt(1 + tu2))**3
        su3 = cu3*tu2*tu
        tp = (z + d*su3)/(p - e2*a*cu3)
        lat = np.arctan(tp)

        lon = np.arctan2(y,x)

    if with_height:
        return lat, lon, _ellipsoidalHeight(x, y, z, lat, a, b)
    return lat, lon

def _ellipsoidalHeight(x, y, z, lat, a, b):
    e2 = (a*a - b*b) / (a*a)
    if USE_NUMEXPR:
        return ne('sqrt(x*x + y*y)*cos(lat) + z*sin(lat) - a*sqrt(1 - e2*sin(lat)**2)')
    sinLat = np.sin(lat)
    h = np.hypot(x, y)*np.cos(lat)
    h += z*sinLat
    h -= a*np.sqrt(1 - e2*sinLat**2)
    return h

def _ecef2GeodeticOptimized_ne(x, y, z, a=wgs84A, b=wgs84B):
    x, y, z = np.asarray(x), np.asarray(y), np.asarray(z)

    e2 = (a*a - b*b) / (a*a) # first eccentricity squared
    d = (a*a - b*b) / b

    p2 = ne('x*x + y*y')
    p = ne('sqrt(p2)')
    tu = p2
    ne('b*z*(1 + d/sqrt(p2 + z*z))/(a*p)', out=tu)
    tu2 = ne('tu*tu')
    cu3 = ne('(1/sqrt(1 + tu2))**3')
    lat = p2
    ne('arctan((z + d*cu3*tu2*tu)/(p - e2*a*cu3))', out=lat)

    lon = p
    ne('arctan2(y,x)', out=lon)

    return lat, lon

def _ecef2GeodeticOptimized_np(x, y, z, a=wgs84A, b=wgs84B):
    """ array-only, memory-efficient version of ecef2Geodetic, around 10-30% faster """
    e2 = (a*a - b*b) / (a*a)
    d = (a*a - b*b) / b

    p2 = np.square(x)
    y2 = np.square(y)
    p2 += y2
    p = y2
    np.sqrt(p2, p)
    r = p2
    z2 = z*z
    r += z2
    np.sqrt(r, r)
    tu = z2
    np.divide(d, r, tu)
    tu += 1
    tu *= b
    tu *= z
    ap = a*p
    tu /= ap
    np.square(tu, r)
    tu2 = r
    cu3 = ap
    np.add(1, tu2, cu3)
    np.sqrt(cu3, cu3)
    np.reciprocal(cu3, cu3)
    cu3 **= 3 # don't replace by the faster cu3*cu3*cu3, it's less accurate!
    su3 = tu
    su3 *= cu3
    su3 *= tu2
    tp = tu2
    np.multiply(d, su3, tp)
    tp += z
    pm = p
    cu3m = cu3
    cu3m *= e2*a
    pm -= cu3m
    tp /= pm
    np.arctan(tp, tp)
    lat = tp

    lon = cu3
    np.arctan2(y,x, lon)

    return lat, lon

def _ecef2GeodeticOptimized(x, y, z, a, b):
    if USE_NUMEXPR:
        return _ecef2GeodeticOptimized_ne(x, y, z, a, b)
    else:
        return _ecef2GeodeticOptimized_np(x, y, z, a, b)

def rotatePole(lats, lons, rotation):
    """
    Rotates the given spherical lat/lon coordinates around the origin.

    :param lats, lons: shape (n,) in radians
    :param rotation: rotation matrix of shape (3,3) applied to the unit vectors
    :rtype: tuple (lats, lons) in radians
    """
    lats, lons = np.asarray(lats), np.asarray(lons)
    if lats.ndim != 1 or lons.ndim != 1:
        raise ValueError('Latitudes and longitudes must be one-dimensional arrays.')
    rotation = np.asarray(rotation)
    if rotation.shape != (3,3):
        raise ValueError('Rotation matrix must have shape (3,3).')

    xyz = spherical_to_cartesian(None, lats, lons, astuple=False)
    xyzRot = np.matmul(rotation, xyz[...,np.newaxis]).reshape(xyz.shape)
    lats, lons = cartesian_to_spherical(xyzRot[:,0], xyzRot[:,1], xyzRot[:,2], with_radius=False)
    return lats, lons

__all__ = [f.__name__ for f in
           [spherical_to_cartesian, cartesian_to_spherical,
            polar_to_cartesian, cartesian_to_polar, ellipsoid_radius,
            geodetic2Ecef, geodetic2EcefZero, ecef2Geodetic, rotatePole]]
