# Copyright European Space Agency, 2013

"""
Non-linear one-dimensional transforms: exponential, logarithmic and power functions.

Those transforms often appear next to each other or next to a linear transform,
for example when converting sample values to logarithmic units and back.
Their concatenation rules collapse such pairs into a single step.
"""

import math

import numpy as np

from mathtransform.errors import NoninvertibleTransformError
from mathtransform.formulas import bits, strictEquals, epsilonEqual
from mathtransform.transform.base import AbstractMathTransform1D, ComparisonMode
from mathtransform.transform.linear import LinearTransform1D, ConstantTransform1D
from mathtransform.util.decorators import preset_lazy

def _linearTerms(transform):
    """
    Returns (scale, offset) if the transform is a non-constant linear 1-D transform.
    """
    if isinstance(transform, LinearTransform1D) and not isinstance(transform, ConstantTransform1D):
        return transform.scale, transform.offset
    return None

def _isValidBase(base):
    return math.isfinite(base) and base > 0 and base != 1

class ExponentialTransform1D(AbstractMathTransform1D):
    """
    ``y = scale * base^x``
    """
    def __init__(self, base, scale=1.0):
        if not base > 0 or base == 1:
            raise ValueError('Illegal base: {}'.format(base))
        self._base = float(base)
        self._scale = float(scale)
        self._rebuildDerivedState()

    def _rebuildDerivedState(self):
        self._lnBase = math.log(self._base)

    @staticmethod
    def create(base, scale=1.0):
        if scale == 0:
            return ConstantTransform1D.ZERO
        if base == 1:
            return LinearTransform1D.create(0, scale)
        return ExponentialTransform1D(base, scale)

    @property
    def base(self):
        return self._base

    @property
    def scale(self):
        return self._scale

    def transformValue(self, x):
        return self._scale * np.power(self._base, x)

    def derivativeValue(self, x):
        return self._scale * self._lnBase * np.power(self._base, x)

    def _createInverse(self):
        if not self._scale > 0:
            raise NoninvertibleTransformError('Exponential with non-positive scale is not invertible.')
        inverse = LogarithmicTransform1D(self._base, -math.log(self._scale) / self._lnBase)
        preset_lazy(inverse, '_inverse', self)
        return inverse

    def _tryConcatenate(self, other, applyOtherFirst, factory):
        terms = _linearTerms(other)
        if terms is not None:
            a, c = terms
            if applyOtherFirst:
                # scale * base^(a*x + c) = (scale * base^c) * (base^a)^x
                base = self._base ** a
                if _isValidBase(base):
                    return ExponentialTransform1D.create(base, self._scale * self._base ** c)
                return None
            if c == 0:
                return ExponentialTransform1D.create(self._base, self._scale * a)
        elif isinstance(other, LogarithmicTransform1D) and not applyOtherFirst and self._scale > 0:
            # log_b'(scale * b^x) + o = x*ln(b)/ln(b') + ln(scale)/ln(b') + o
            lnOther = other._lnBase
            return LinearTransform1D.create(self._lnBase / lnOther,
                                            math.log(self._scale) / lnOther + other.offset)
        return super(ExponentialTransform1D, self)._tryConcatenate(other, applyOtherFirst, factory)

    def _equalsSameType(self, other, mode):
        if mode is ComparisonMode.STRICT:
            return strictEquals(self._base, other._base) and strictEquals(self._scale, other._scale)
        return epsilonEqual(self._base, other._base) and epsilonEqual(self._scale, other._scale)

    def _hashKey(self):
        return (bits(self._base), bits(self._scale))

    def __repr__(self):
        return 'ExponentialTransform1D(base={!r}, scale={!r})'.format(self._base, self._scale)

class LogarithmicTransform1D(AbstractMathTransform1D):
    """
    ``y = log_base(x) + offset``
    """
    def __init__(self, base, offset=0.0):
        if not base > 0 or base == 1:
            raise ValueError('Illegal base: {}'.format(base))
        self._base = float(base)
        self._offset = float(offset)
        self._rebuildDerivedState()

    def _rebuildDerivedState(self):
        self._lnBase = math.log(self._base)

    @staticmethod
    def create(base, offset=0.0):
        return LogarithmicTransform1D(base, offset)

    @property
    def base(self):
        return self._base

    @property
    def offset(self):
        return self._offset

    def transformValue(self, x):
        if self._base == 10:
            y = np.log10(x)
        else:
            y = np.log(x) / self._lnBase
        return y + self._offset

    def derivativeValue(self, x):
        return 1 / (x * self._lnBase)

    def _createInverse(self):
        inverse = ExponentialTransform1D(self._base, self._base ** -self._offset)
        preset_lazy(inverse, '_inverse', self)
        return inverse

    def _tryConcatenate(self, other, applyOtherFirst, factory):
        if not applyOtherFirst:
            terms = _linearTerms(other)
            if terms is not None:
                a, c = terms
                # a*(log_b(x) + o) + c = log_(b^(1/a))(x) + a*o + c
                if a == 1:
                    return LogarithmicTransform1D.create(self._base, self._offset + c)
                base = self._base ** (1/a)
                if _isValidBase(base):
                    return LogarithmicTransform1D.create(base, a*self._offset + c)
            if isinstance(other, ExponentialTransform1D):
                # s * b'^(log_b(x) + o) = (s * b'^o) * x^(ln(b')/ln(b))
                power = other._lnBase / self._lnBase
                scale = other.scale * other.base ** self._offset
                return PowerTransform1D.create(power, scale)
        return super(LogarithmicTransform1D, self)._tryConcatenate(other, applyOtherFirst, factory)

    def _equalsSameType(self, other, mode):
        if mode is ComparisonMode.STRICT:
            return strictEquals(self._base, other._base) and strictEquals(self._offset, other._offset)
        return epsilonEqual(self._base, other._base) and epsilonEqual(self._offset, other._offset)

    def _hashKey(self):
        return (bits(self._base), bits(self._offset))

    def __repr__(self):
        return 'LogarithmicTransform1D(base={!r}, offset={!r})'.format(self._base, self._offset)

class PowerTransform1D(AbstractMathTransform1D):
    """
    ``y = scale * x^power``, defined for positive `x`.
    """
    def __init__(self, power, scale=1.0):
        self._power = float(power)
        self._scale = float(scale)

    @staticmethod
    def create(power, scale=1.0):
        if power == 1:
            return LinearTransform1D.create(scale, 0)
        if power == 0 or scale == 0:
            return LinearTransform1D.create(0, scale if power == 0 else 0)
        return PowerTransform1D(power, scale)

    @property
    def power(self):
        return self._power

    @property
    def scale(self):
        return self._scale

    def transformValue(self, x):
        return self._scale * np.power(x, self._power)

    def derivativeValue(self, x):
        return self._scale * self._power * np.power(x, self._power - 1)

    def _createInverse(self):
        if not self._scale > 0:
            raise NoninvertibleTransformError('Power function with non-positive scale is not invertible.')
        # x = (y/scale)^(1/power)
        inverse = PowerTransform1D(1/self._power, self._scale ** (-1/self._power))
        preset_lazy(inverse, '_inverse', self)
        return inverse

    def _tryConcatenate(self, other, applyOtherFirst, factory):
        if isinstance(other, PowerTransform1D) and not applyOtherFirst and self._scale > 0:
            # k2 * (k1 * x^p1)^p2
            return PowerTransform1D.create(self._power * other._power,
                                           other._scale * self._scale ** other._power)
        return super(PowerTransform1D, self)._tryConcatenate(other, applyOtherFirst, factory)

    def _equalsSameType(self, other, mode):
        if mode is ComparisonMode.STRICT:
            return strictEquals(self._power, other._power) and strictEquals(self._scale, other._scale)
        return epsilonEqual(self._power, other._power) and epsilonEqual(self._scale, other._scale)

    def _hashKey(self):
        return (bits(self._power), bits(self._scale))

    def __repr__(self):
        return 'PowerTransform1D(power={!r}, scale={!r})'.format(self._power, self._scale)
