# Copyright European Space Agency, 2013

"""
Extended precision arithmetic based on pairs of floats ("double-double").

A :class:`DoubleDouble` represents the unevaluated sum ``value + error``
where ``|error|`` is at most half an ulp of ``value``. This gives about
106 bits of precision, enough to cancel most of the rounding errors
accumulated when many affine transforms are concatenated and inverted.

The error-free transformations used here are the two-sum algorithm of Knuth
and the product algorithm of Dekker, see e.g.
Hida, Li and Bailey, "Library for double-double and quad-double arithmetic", 2007.
"""

import math
from decimal import Decimal

# 2^27 + 1, used for splitting a float into two non-overlapping halves
_SPLITTER = 134217729.0

def _twoSum(a, b):
    s = a + b
    bb = s - a
    e = (a - (s - bb)) + (b - bb)
    return s, e

def _quickTwoSum(a, b):
    s = a + b
    if not math.isfinite(s):
        return s, 0.0
    e = b - (s - a)
    return s, e

def _split(a):
    t = _SPLITTER * a
    hi = t - (t - a)
    return hi, a - hi

def _twoProduct(a, b):
    p = a * b
    if not math.isfinite(p):
        return p, 0.0
    ahi, alo = _split(a)
    bhi, blo = _split(b)
    e = ((ahi*bhi - p) + ahi*blo + alo*bhi) + alo*blo
    return p, e

class DoubleDouble(object):
    """
    Immutable extended precision number.

    Arithmetic operators accept other :class:`DoubleDouble` instances
    as well as plain numbers.
    """
    __slots__ = ('value', 'error')

    def __init__(self, value, error=0.0):
        object.__setattr__(self, 'value', float(value))
        object.__setattr__(self, 'error', float(error))

    def __setattr__(self, name, value):
        raise AttributeError('DoubleDouble is immutable')

    def __reduce__(self):
        return (DoubleDouble, (self.value, self.error))

    @staticmethod
    def of(number, decimal=False):
        """
        Converts a number to a :class:`DoubleDouble`.

        :param number: a float, int or DoubleDouble
        :param bool decimal: if True, `number` is assumed to be the closest float
            to a value which was written in base 10 (e.g. 0.1), and the difference
            between that decimal value and the float is stored as error term
        :rtype: DoubleDouble
        """
        if isinstance(number, DoubleDouble):
            return number
        if isinstance(number, int):
            hi = float(number)
            return DoubleDouble(hi, float(number - int(hi)) if math.isfinite(hi) else 0.0)
        number = float(number)
        if decimal and math.isfinite(number) and number != 0:
            error = float(Decimal(repr(number)) - Decimal(number))
            return DoubleDouble(number, error)
        return DoubleDouble(number)

    def isZero(self):
        return self.value == 0 and self.error == 0

    def __float__(self):
        return self.value + self.error

    def __add__(self, other):
        other = DoubleDouble.of(other)
        s, e = _twoSum(self.value, other.value)
        if not math.isfinite(s):
            return DoubleDouble(s)
        e += self.error + other.error
        return DoubleDouble(*_quickTwoSum(s, e))

    __radd__ = __add__

    def __neg__(self):
        return DoubleDouble(-self.value, -self.error)

    def __sub__(self, other):
        return self + (-DoubleDouble.of(other))

    def __rsub__(self, other):
        return DoubleDouble.of(other) - self

    def __mul__(self, other):
        other = DoubleDouble.of(other)
        p, e = _twoProduct(self.value, other.value)
        if not math.isfinite(p):
            return DoubleDouble(p)
        e += self.value*other.error + self.error*other.value
        return DoubleDouble(*_quickTwoSum(p, e))

    __rmul__ = __mul__

    def __truediv__(self, other):
        other = DoubleDouble.of(other)
        if other.value == 0:
            raise ZeroDivisionError('DoubleDouble division by zero')
        q1 = self.value / other.value
        if not math.isfinite(q1):
            return DoubleDouble(q1)
        r = self - other*q1
        q2 = r.value / other.value
        r = r - other*q2
        q3 = r.value / other.value
        q1, q2 = _quickTwoSum(q1, q2)
        return DoubleDouble(q1, q2) + q3

    def __rtruediv__(self, other):
        return DoubleDouble.of(other) / self

    def inverse(self):
        return DoubleDouble(1.0) / self

    def sqrt(self):
        """
        Square root with one Newton correction step in extended precision.
        """
        if self.value <= 0:
            if self.value == 0:
                return DoubleDouble(0.0)
            return DoubleDouble(float('nan'))
        x = math.sqrt(self.value)
        # x + (a - x*x) / (2x)
        r = self - DoubleDouble(x)*x
        return DoubleDouble(x) + r.value / (2*x)

    def __abs__(self):
        return -self if self.value < 0 else self

    def __lt__(self, other):
        other = DoubleDouble.of(other)
        return (self.value, self.error) < (other.value, other.error)

    def __eq__(self, other):
        if isinstance(other, (int, float)):
            other = DoubleDouble.of(other)
        if not isinstance(other, DoubleDouble):
            return NotImplemented
        return self.value == other.value and self.error == other.error

    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    def __hash__(self):
        return hash((self.value, self.error))

    def __repr__(self):
        return 'DoubleDouble({!r}, {!r})'.format(self.value, self.error)

    def __str__(self):
        return repr(float(self))

DoubleDouble.ZERO = DoubleDouble(0.0)
DoubleDouble.ONE = DoubleDouble(1.0)
DoubleDouble.PI = DoubleDouble(3.141592653589793, 1.2246467991473532e-16)
DoubleDouble.DEGREES_TO_RADIANS = DoubleDouble.PI / 180
DoubleDouble.RADIANS_TO_DEGREES = DoubleDouble(180.0) / DoubleDouble.PI
