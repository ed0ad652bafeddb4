# Copyright European Space Agency, 2013

"""
Minimal coordinate system descriptors: the kind of a coordinate system and the
direction and unit of each of its axes.

Each kind has a normalized form matching the axis order and units expected by
the kernels of :mod:`mathtransform.coordinates`. :func:`swapAndScaleAxes`
returns the affine conversion between two coordinate systems that differ only
in axis order, axis sign and units.
"""

from collections import namedtuple
from enum import Enum

import astropy.units as u

from mathtransform.errors import OperationNotFoundError, IncommensurableError
from mathtransform.matrix import Matrix, DoubleDouble

class CSKind(Enum):
    CARTESIAN = 1
    SPHERICAL = 2
    POLAR = 3
    CYLINDRICAL = 4
    ELLIPSOIDAL = 5

class AxisDirection(Enum):
    """
    A direction is an absolute direction and a sign, e.g. WEST is
    EAST with sign -1.
    """
    EAST = ('EAST', 1)
    WEST = ('EAST', -1)
    NORTH = ('NORTH', 1)
    SOUTH = ('NORTH', -1)
    UP = ('UP', 1)
    DOWN = ('UP', -1)
    GEOCENTRIC_X = ('GEOCENTRIC_X', 1)
    GEOCENTRIC_Y = ('GEOCENTRIC_Y', 1)
    GEOCENTRIC_Z = ('GEOCENTRIC_Z', 1)
    AWAY_FROM = ('AWAY_FROM', 1)
    TOWARDS = ('AWAY_FROM', -1)
    COUNTER_CLOCKWISE = ('COUNTER_CLOCKWISE', 1)
    CLOCKWISE = ('COUNTER_CLOCKWISE', -1)

    @property
    def absolute(self):
        return AxisDirection((self.value[0], 1))

    @property
    def sign(self):
        return self.value[1]

Axis = namedtuple('Axis', ['abbreviation', 'direction', 'unit'])

# axis order of the kernels, by absolute direction
_KERNEL_ORDER = {
    CSKind.CARTESIAN: (AxisDirection.GEOCENTRIC_X, AxisDirection.GEOCENTRIC_Y, AxisDirection.GEOCENTRIC_Z,
                       AxisDirection.EAST, AxisDirection.NORTH, AxisDirection.UP),
    CSKind.SPHERICAL: (AxisDirection.EAST, AxisDirection.NORTH, AxisDirection.UP),
    CSKind.ELLIPSOIDAL: (AxisDirection.EAST, AxisDirection.NORTH, AxisDirection.UP),
    CSKind.POLAR: (AxisDirection.AWAY_FROM, AxisDirection.COUNTER_CLOCKWISE),
    CSKind.CYLINDRICAL: (AxisDirection.AWAY_FROM, AxisDirection.COUNTER_CLOCKWISE, AxisDirection.UP),
}

_DIMENSIONS = {
    CSKind.CARTESIAN: (1, 2, 3),
    CSKind.SPHERICAL: (2, 3),
    CSKind.ELLIPSOIDAL: (2, 3),
    CSKind.POLAR: (2,),
    CSKind.CYLINDRICAL: (3,),
}

def _normalizedUnit(unit, kind):
    if unit.physical_type == 'angle':
        return u.deg if kind is CSKind.ELLIPSOIDAL else u.rad
    if unit.physical_type == 'length':
        return u.m
    return unit

class CoordinateSystem(object):
    """
    A coordinate system of a single kind.

    :param CSKind kind:
    :param axes: sequence of :class:`Axis`
    :param str name: optional, for display only
    """
    def __init__(self, kind, axes, name=None):
        axes = tuple(Axis(a.abbreviation, a.direction, u.Unit(a.unit)) for a in axes)
        if len(axes) not in _DIMENSIONS[kind]:
            raise ValueError('A {} coordinate system can not have {} axes.'.format(kind.name.lower(), len(axes)))
        directions = [a.direction.absolute for a in axes]
        if len(set(directions)) != len(directions):
            raise ValueError('Colinear axes in {}'.format([a.abbreviation for a in axes]))
        self._kind = kind
        self._axes = axes
        self._name = name

    @property
    def kind(self):
        return self._kind

    @property
    def axes(self):
        return self._axes

    @property
    def dimension(self):
        return len(self._axes)

    @property
    def name(self):
        return self._name

    @property
    def components(self):
        return (self,)

    def asSingle(self):
        return self

    def normalized(self):
        """
        Returns this coordinate system with the axes in the order expected by the
        kernels, all directions absolute, angles in radians (degrees for ellipsoidal
        coordinate systems) and lengths in metres.
        """
        order = _KERNEL_ORDER[self._kind]
        def rank(axis):
            d = axis.direction.absolute
            return order.index(d) if d in order else len(order)
        axes = [Axis(a.abbreviation, a.direction.absolute, _normalizedUnit(a.unit, self._kind))
                for a in sorted(self._axes, key=rank)]
        return CoordinateSystem(self._kind, axes, self._name)

    def __eq__(self, other):
        if not isinstance(other, CoordinateSystem):
            return NotImplemented
        return self._kind == other._kind and self._axes == other._axes

    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    def __hash__(self):
        return hash((self._kind, self._axes))

    def __repr__(self):
        axes = ', '.join('{} {} [{}]'.format(a.abbreviation, a.direction.name, a.unit) for a in self._axes)
        return '{}CS({})'.format(self._kind.name.capitalize(), axes)

def _isVertical(cs):
    return cs.kind is CSKind.CARTESIAN and cs.dimension == 1 and cs.axes[0].direction.absolute is AxisDirection.UP

class CompoundCS(object):
    """
    Coordinate systems side by side, e.g. a horizontal and a vertical one.
    """
    def __init__(self, components, name=None):
        components = tuple(components)
        if not components:
            raise ValueError('A compound coordinate system needs at least one component.')
        for c in components:
            if not isinstance(c, CoordinateSystem):
                raise TypeError('Components must be single coordinate systems, got {!r}'.format(c))
        self._components = components
        self._name = name

    @property
    def components(self):
        return self._components

    @property
    def kinds(self):
        return tuple(c.kind for c in self._components)

    @property
    def dimension(self):
        return sum(c.dimension for c in self._components)

    @property
    def axes(self):
        return tuple(a for c in self._components for a in c.axes)

    @property
    def name(self):
        return self._name

    def asSingle(self):
        """
        Returns the single coordinate system equivalent to this compound one,
        or None if there is none.

        Recognized combinations are a horizontal component followed by a vertical
        one (ellipsoidal + height, spherical + radius, polar + height) and
        Cartesian components of at most three dimensions in total.
        """
        if len(self._components) == 1:
            return self._components[0]
        if len(self._components) == 2 and _isVertical(self._components[1]):
            horizontal = self._components[0]
            kind = {CSKind.ELLIPSOIDAL: CSKind.ELLIPSOIDAL,
                    CSKind.SPHERICAL: CSKind.SPHERICAL,
                    CSKind.POLAR: CSKind.CYLINDRICAL}.get(horizontal.kind)
            if kind is not None and horizontal.dimension == 2:
                return CoordinateSystem(kind, self.axes, self._name)
        if all(c.kind is CSKind.CARTESIAN for c in self._components) and self.dimension <= 3:
            try:
                return CoordinateSystem(CSKind.CARTESIAN, self.axes, self._name)
            except ValueError:
                return None
        return None

    def __eq__(self, other):
        if not isinstance(other, CompoundCS):
            return NotImplemented
        return self._components == other._components

    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    def __hash__(self):
        return hash(self._components)

    def __repr__(self):
        return 'CompoundCS({})'.format(', '.join(repr(c) for c in self._components))

def unitConversionFactor(source, target):
    """
    Returns the factor converting values in unit `source` to unit `target`.
    Conversions between degrees and radians are exact to double-double precision.

    :rtype: float or DoubleDouble
    :raise IncommensurableError: if the units can not be converted
    """
    if source == target:
        return 1.0
    if source == u.deg and target == u.rad:
        return DoubleDouble.DEGREES_TO_RADIANS
    if source == u.rad and target == u.deg:
        return DoubleDouble.RADIANS_TO_DEGREES
    try:
        factor = source.to(target)
    except u.UnitConversionError:
        raise IncommensurableError(source, target)
    return DoubleDouble.of(factor, decimal=True)

def swapAndScaleAxes(source, target):
    """
    Returns the affine matrix converting coordinates in `source` to coordinates
    in `target`. Each target axis is taken from the source axis of the same absolute
    direction, with the sign and unit changed as needed. Source axes without
    counterpart in the target are dropped.

    :rtype: Matrix of size (target.dimension + 1, source.dimension + 1)
    :raise OperationNotFoundError: if a target direction does not exist in the source
    :raise IncommensurableError: if the units of two matching axes can not be converted
    """
    srcAxes, tgtAxes = source.axes, target.axes
    m = Matrix(len(tgtAxes) + 1, len(srcAxes) + 1)
    for j, tgt in enumerate(tgtAxes):
        for i, src in enumerate(srcAxes):
            if src.direction.absolute is tgt.direction.absolute:
                factor = unitConversionFactor(src.unit, tgt.unit)
                if src.direction.sign != tgt.direction.sign:
                    factor = -factor
                m.setElement(j, i, factor)
                break
        else:
            raise OperationNotFoundError(_kinds(source), _kinds(target),
                'No axis in direction {} in the source coordinate system.'.format(tgt.direction.name))
    m.setElement(len(tgtAxes), len(srcAxes), 1)
    return m

def _kinds(cs):
    return tuple(c.kind for c in cs.components)
