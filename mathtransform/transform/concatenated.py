# Copyright European Space Agency, 2013

"""
Chains of transforms applied one after the other.

:meth:`ConcatenatedTransform.create` is the concatenation engine: it flattens
nested chains into a single list of steps and gives each pair of neighbors
the chance to merge into a simpler step (see
:meth:`~mathtransform.transform.base.AbstractMathTransform._tryConcatenate`)
before wrapping the remaining steps.
"""

import logging

import numpy as np

from mathtransform.errors import MismatchedDimensionError, TransformError
from mathtransform.matrix import Matrix
from mathtransform.transform.base import AbstractMathTransform
from mathtransform.transform.linear import LinearTransform, IdentityTransform
from mathtransform.util.decorators import preset_lazy

def _defaultFactory():
    # imported here as the factory module depends on this one
    from mathtransform.transform.factory import MathTransformFactory
    return MathTransformFactory.provider()

def _flatten(transforms):
    steps = []
    for t in transforms:
        if isinstance(t, ConcatenatedTransform):
            steps.extend(t._steps)
        elif not t.isIdentity():
            steps.append(t)
    return steps

def _tryPair(first, second, factory):
    """
    Asks `first` whether it can merge with its successor, then `second`
    whether it can merge with its predecessor.
    """
    for step, other, applyOtherFirst in ((first, second, False), (second, first, True)):
        try:
            replacement = step._tryConcatenate(other, applyOtherFirst, factory)
        except (ArithmeticError, ValueError, TransformError) as e:
            logging.debug('Could not simplify {} followed by {}: {}'.format(
                           type(first).__name__, type(second).__name__, e))
            continue
        if replacement is None:
            continue
        if replacement.sourceDim != first.sourceDim or replacement.targetDim != second.targetDim:
            logging.debug('Ignoring simplification of {} followed by {} with wrong dimensions'.format(
                           type(first).__name__, type(second).__name__))
            continue
        return replacement
    return None

def _simplify(steps, factory):
    """
    Replaces pairs of neighbor steps by simpler equivalents until no pair
    can be simplified anymore. Each accepted replacement has less steps
    than the pair it replaces, so this terminates.
    """
    i = 0
    while i < len(steps) - 1:
        replacement = _tryPair(steps[i], steps[i+1], factory)
        if replacement is not None:
            replacement = _flatten([replacement])
            if len(replacement) < 2:
                steps[i:i+2] = replacement
                i = max(i - 1, 0)
                continue
        i += 1
    return steps

class ConcatenatedTransform(AbstractMathTransform):
    """
    A flat sequence of at least two steps where the target dimension
    of each step equals the source dimension of the next step.
    """
    def __init__(self, steps):
        steps = tuple(steps)
        if len(steps) < 2:
            raise ValueError('A concatenation needs at least two steps.')
        for a, b in zip(steps, steps[1:]):
            if isinstance(a, ConcatenatedTransform) or isinstance(b, ConcatenatedTransform):
                raise ValueError('Nested concatenations must be flattened.')
        _checkDimensions(steps)
        self._steps = steps

    @staticmethod
    def create(transforms, factory=None):
        """
        Concatenates the given transforms, simplifying where possible.

        :param transforms: sequence of transforms, applied in order
        :param factory: the :class:`~mathtransform.transform.factory.MathTransformFactory`
            used by simplification rules to create new steps
        :return: an identity transform, a single step or a :class:`ConcatenatedTransform`
        :raise MismatchedDimensionError: if the target dimension of a transform
            differs from the source dimension of the next one
        """
        transforms = list(transforms)
        if not transforms:
            raise ValueError('No transform to concatenate.')
        _checkDimensions(transforms)
        if len(transforms) == 1:
            return transforms[0]
        if factory is None:
            factory = _defaultFactory()
        steps = _simplify(_flatten(transforms), factory)
        if not steps:
            return IdentityTransform.create(transforms[0].sourceDim)
        if len(steps) == 1:
            return steps[0]
        return ConcatenatedTransform(steps)

    @property
    def sourceDim(self):
        return self._steps[0].sourceDim

    @property
    def targetDim(self):
        return self._steps[-1].targetDim

    def getSteps(self):
        """
        :rtype: list of the steps of this chain, in the order they are applied
        """
        return list(self._steps)

    def _transform(self, srcPts, srcOff, dstPts, dstOff, derivate):
        point = np.array(srcPts[srcOff:srcOff + self.sourceDim], dtype=float)
        jacobian = None
        for step in self._steps:
            out = np.empty(step.targetDim)
            d = step._transform(point, 0, out, 0, derivate)
            if derivate:
                d = d.toArray()
                jacobian = d if jacobian is None else d.dot(jacobian)
            point = out
        if dstPts is not None:
            dstPts[dstOff:dstOff + self.targetDim] = point
        return Matrix.fromArray(jacobian) if derivate else None

    def _transformArray(self, coords):
        for step in self._steps:
            coords = step._transformArray(coords)
        return coords

    def _createInverse(self):
        inverses = [step.inverse() for step in reversed(self._steps)]
        inverse = ConcatenatedTransform.create(inverses, _defaultFactory())
        if isinstance(inverse, ConcatenatedTransform):
            preset_lazy(inverse, '_inverse', self)
        return inverse

    def getContextualParameters(self):
        """
        Returns the parameters of the non-linear step of this chain
        if there is exactly one.
        """
        kernels = [step for step in self._steps if not isinstance(step, LinearTransform)]
        if len(kernels) == 1:
            return kernels[0].getContextualParameters()
        return None

    def _equalsSameType(self, other, mode):
        return (len(self._steps) == len(other._steps) and
                all(a.equals(b, mode) for a, b in zip(self._steps, other._steps)))

    def _hashKey(self):
        return tuple(hash(step) for step in self._steps)

    def __repr__(self):
        return 'ConcatenatedTransform(\n  ' + ',\n  '.join(repr(s) for s in self._steps) + ')'

def _checkDimensions(transforms):
    for i, (a, b) in enumerate(zip(transforms, transforms[1:])):
        if a.targetDim != b.sourceDim:
            raise MismatchedDimensionError(
                'Step {} ({}) has {} target dimensions but step {} ({}) expects {} source dimensions.'.format(
                 i, type(a).__name__, a.targetDim, i + 1, type(b).__name__, b.sourceDim),
                a.targetDim, b.sourceDim)

def getSteps(transform):
    """
    Returns the steps of a transform: the flattened list of steps if it is
    a concatenation, otherwise a list containing only the transform itself.
    """
    if isinstance(transform, ConcatenatedTransform):
        return transform.getSteps()
    return [transform]

def getFirstStep(transform):
    return getSteps(transform)[0]

def getLastStep(transform):
    return getSteps(transform)[-1]
