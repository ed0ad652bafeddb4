# Copyright European Space Agency, 2013

"""
The factory through which all transforms are created and combined.

A caching factory interns the transforms it returns: when a transform equal
to a previously created one is requested, the previous instance is returned.
Interning is only an optimization, a transform which was garbage collected
is simply created again.
"""

import logging
import threading
import weakref

from mathtransform.matrix import Matrix
from mathtransform.transform.base import ComparisonMode
from mathtransform.transform.linear import create as createLinear
from mathtransform.transform.concatenated import ConcatenatedTransform
from mathtransform.transform.passthrough import PassThroughTransform, createIndexed, compound
from mathtransform.transform.specializable import specialize

class _WeakHashSet(object):
    """
    A set of weakly referenced values, grouped by hash code.
    The cleanup callbacks may run in the thread holding the lock,
    for example when a value is collected during a call to ``equals``.
    """
    def __init__(self):
        self._lock = threading.RLock()
        self._entries = {}

    def unique(self, value):
        """
        Returns the element equal to `value` if there is one,
        otherwise adds `value` and returns it.
        """
        key = hash(value)
        with self._lock:
            refs = [ref for ref in self._entries.get(key, []) if ref() is not None]
            for ref in refs:
                existing = ref()
                if existing is not None and existing.equals(value, ComparisonMode.STRICT):
                    self._entries[key] = refs
                    logging.debug('Reusing existing ' + type(existing).__name__)
                    return existing
            refs.append(weakref.ref(value, self._cleaner(key)))
            self._entries[key] = refs
            return value

    def _cleaner(self, key):
        selfref = weakref.ref(self)
        def clean(_):
            pool = selfref()
            if pool is None:
                return
            with pool._lock:
                refs = [ref for ref in pool._entries.get(key, []) if ref() is not None]
                if refs:
                    pool._entries[key] = refs
                else:
                    pool._entries.pop(key, None)
        return clean

    def __len__(self):
        with self._lock:
            return sum(1 for refs in list(self._entries.values()) for ref in refs if ref() is not None)

class MathTransformFactory(object):
    """
    Creates linear transforms, concatenations, pass-through and specializable
    transforms. The simplification rules of the transforms use the factory
    given to them for all transforms they create.
    """
    _provider = None
    _providerLock = threading.Lock()

    def __init__(self, caching=True, pool=None):
        """
        :param bool caching: whether the created transforms are interned
        :param pool: internal, the pool to share with another factory
        """
        self._caching = caching
        self._pool = pool if pool is not None else _WeakHashSet()

    @staticmethod
    def provider():
        """
        Returns the factory shared by the whole process.
        """
        with MathTransformFactory._providerLock:
            if MathTransformFactory._provider is None:
                MathTransformFactory._provider = MathTransformFactory()
            return MathTransformFactory._provider

    def caching(self, enabled):
        """
        Returns a factory sharing the pool of this factory, which interns
        the created transforms only if `enabled` is True.
        """
        if enabled == self._caching:
            return self
        return MathTransformFactory(enabled, self._pool)

    @property
    def isCaching(self):
        return self._caching

    def unique(self, transform):
        """
        Returns a previously created transform equal to the given one if this
        factory is caching and there is one, otherwise `transform` itself.
        """
        if not self._caching:
            return transform
        return self._pool.unique(transform)

    def createAffineTransform(self, matrix):
        """
        :param matrix: a :class:`~mathtransform.matrix.Matrix` or 2D array-like
        :rtype: LinearTransform
        """
        if not isinstance(matrix, Matrix):
            matrix = Matrix.fromArray(matrix)
        return self.unique(createLinear(matrix))

    def createConcatenatedTransform(self, *transforms):
        """
        Concatenates transforms, applied in the given order.

        :raise MismatchedDimensionError: if two neighbors have incompatible dimensions
        """
        return self.unique(ConcatenatedTransform.create(transforms, self))

    def createPassThroughTransform(self, firstAffectedCoordinate, subTransform, numTrailingCoordinates):
        return self.unique(PassThroughTransform.create(firstAffectedCoordinate, subTransform,
                                                       numTrailingCoordinates, self))

    def createIndexedPassThroughTransform(self, modifiedCoordinates, subTransform, resultDim):
        """
        See :func:`~mathtransform.transform.passthrough.createIndexed`.
        """
        return self.unique(createIndexed(modifiedCoordinates, subTransform, resultDim, self))

    def createCompoundTransform(self, *transforms):
        return self.unique(compound(transforms, self))

    def createSpecializableTransform(self, globalTransform, specializations):
        return self.unique(specialize(globalTransform, specializations))
