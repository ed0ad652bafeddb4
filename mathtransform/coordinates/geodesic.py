# Copyright European Space Agency, 2013

"""
This module contains the ellipsoid descriptor used by the geodesy kernels.
"""

from collections import namedtuple

import astropy.units as u
from geographiclib.constants import Constants

from mathtransform.errors import IncommensurableError

# in metres
wgs84A = Constants.WGS84_a
wgs84F = Constants.WGS84_f
wgs84B = wgs84A * (1 - wgs84F)

class Ellipsoid(namedtuple('Ellipsoid', ['name', 'semiMajorAxis', 'semiMinorAxis', 'unit'])):
    """
    An ellipsoid of revolution.

    :param str name:
    :param float semiMajorAxis: equatorial radius
    :param float semiMinorAxis: polar radius
    :param unit: astropy length unit of both axes
    """
    __slots__ = ()

    def __new__(cls, name, semiMajorAxis, semiMinorAxis, unit=u.m):
        if not (semiMajorAxis > 0 and semiMinorAxis > 0):
            raise ValueError('Illegal ellipsoid axes: {}, {}'.format(semiMajorAxis, semiMinorAxis))
        return super(Ellipsoid, cls).__new__(cls, name, float(semiMajorAxis), float(semiMinorAxis), u.Unit(unit))

    @staticmethod
    def fromFlattening(name, semiMajorAxis, flattening, unit=u.m):
        return Ellipsoid(name, semiMajorAxis, semiMajorAxis*(1 - flattening), unit)

    @staticmethod
    def sphere(name, radius, unit=u.m):
        return Ellipsoid(name, radius, radius, unit)

    @property
    def flattening(self):
        return (self.semiMajorAxis - self.semiMinorAxis) / self.semiMajorAxis

    @property
    def eccentricitySquared(self):
        """
        First eccentricity squared.
        """
        a, b = self.semiMajorAxis, self.semiMinorAxis
        return (a*a - b*b) / (a*a)

    def inUnit(self, unit):
        """
        Returns this ellipsoid with the axis lengths converted to the given unit.

        :raise IncommensurableError: if `unit` is not a length unit
        """
        unit = u.Unit(unit)
        if unit == self.unit:
            return self
        try:
            factor = self.unit.to(unit)
        except u.UnitConversionError:
            raise IncommensurableError(self.unit, unit)
        return Ellipsoid(self.name, self.semiMajorAxis*factor, self.semiMinorAxis*factor, unit)

WGS84 = Ellipsoid('WGS 84', wgs84A, wgs84B, u.m)
