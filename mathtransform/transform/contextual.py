# Copyright European Space Agency, 2013

"""
The normalize, kernel, denormalize chain used by all non-linear transforms.

A non-linear kernel, for example the conversion from geographic to geocentric
coordinates, is easier and faster to implement when its inputs and outputs
are in a convenient form: angles in radians, lengths relative to the semi-major
axis of the ellipsoid, and so on. The conversions from and to the units of the
coordinate systems are done by two affine transforms, the "normalization" before
the kernel and the "denormalization" after it. Those affine steps can then be
merged with the neighboring affine steps of a longer chain.

:class:`ContextualParameters` holds both matrices together with the parameter
values which describe the complete chain. Those values are for diagnostics only:
kernels never read them back for their own arithmetic.
"""

import threading
from collections import namedtuple, OrderedDict
from enum import Enum

from mathtransform.errors import AlreadyInitializedError, MismatchedDimensionError,\
    MissingParameterError
from mathtransform.matrix import Matrix, DoubleDouble

ParameterDescriptorGroup = namedtuple('ParameterDescriptorGroup', ['name', 'parameters'])
ParameterDescriptorGroup.__doc__ = """
Describes the parameters of an operation by their names, in a fixed order.
"""

class MatrixRole(Enum):
    NORMALIZATION = 1
    DENORMALIZATION = 2
    INVERSE_NORMALIZATION = 3
    INVERSE_DENORMALIZATION = 4

class ContextualParameters(object):
    """
    Parameter values and normalization matrices of a non-linear kernel.

    The parameters can be modified until :meth:`completeTransform` or
    :meth:`freeze` is invoked, and are read-only afterwards.
    """
    def __init__(self, descriptor, srcDim, tgtDim):
        """
        :param ParameterDescriptorGroup descriptor: names of the parameters
        :param int srcDim: number of source dimensions of the complete transform
        :param int tgtDim: number of target dimensions of the complete transform
        """
        self._descriptor = descriptor
        self._normalize = Matrix.identity(srcDim + 1)
        self._denormalize = Matrix.identity(tgtDim + 1)
        self._values = OrderedDict()
        self._frozen = False
        self._inverses = {}
        self._lock = threading.RLock()

    @property
    def descriptor(self):
        return self._descriptor

    @property
    def isFrozen(self):
        return self._frozen

    def freeze(self):
        """
        Makes the parameters and matrices read-only.
        """
        self._frozen = True
        self._normalize.freeze()
        self._denormalize.freeze()

    def setParameter(self, name, value, unit=None):
        """
        :param str name: one of the names of the descriptor
        :param float value:
        :param unit: an astropy unit, or None
        :raise KeyError: if the descriptor has no parameter of that name
        :raise AlreadyInitializedError: if the parameters are frozen
        """
        if self._frozen:
            raise AlreadyInitializedError('Parameters of "{}" are read-only.'.format(self._descriptor.name))
        if name not in self._descriptor.parameters:
            raise KeyError('No parameter "{}" in "{}".'.format(name, self._descriptor.name))
        self._values[name] = (float(value), unit)

    def parameterValue(self, name):
        """
        :raise KeyError: if the descriptor has no parameter of that name
        :raise MissingParameterError: if the parameter has no value
        """
        if name not in self._descriptor.parameters:
            raise KeyError('No parameter "{}" in "{}".'.format(name, self._descriptor.name))
        try:
            return self._values[name][0]
        except KeyError:
            raise MissingParameterError(name)

    __getitem__ = parameterValue

    def __contains__(self, name):
        return name in self._values

    def unit(self, name):
        return self._values[name][1] if name in self._values else None

    def values(self):
        """
        :rtype: OrderedDict of parameter names to values
        """
        return OrderedDict((name, v[0]) for name, v in self._values.items())

    def getMatrix(self, role):
        """
        Returns one of the matrices of the chain.

        The normalization and denormalization matrices are returned by reference
        and can be modified until the parameters are frozen. The inverse matrices
        are always new read-only instances.

        :param MatrixRole role:
        :rtype: Matrix
        """
        if role is MatrixRole.NORMALIZATION:
            return self._normalize
        if role is MatrixRole.DENORMALIZATION:
            return self._denormalize
        if role is MatrixRole.INVERSE_NORMALIZATION:
            return self._normalize.inverse().freeze()
        if role is MatrixRole.INVERSE_DENORMALIZATION:
            return self._denormalize.inverse().freeze()
        raise ValueError('Unknown role: {}'.format(role))

    def normalizeGeographicInputs(self, lon0):
        """
        Prepends a conversion of the first two input coordinates, longitude and
        latitude in degrees, to radians. The `lon0` central meridian is subtracted
        from the longitude before the conversion.

        :param float lon0: central meridian in degrees
        :return: the normalization matrix
        """
        m = self.getMatrix(MatrixRole.NORMALIZATION)
        offset = None
        if lon0 != 0:
            offset = -DoubleDouble.of(lon0, decimal=True) * DoubleDouble.DEGREES_TO_RADIANS
        m.convertBefore(0, DoubleDouble.DEGREES_TO_RADIANS, offset)
        m.convertBefore(1, DoubleDouble.DEGREES_TO_RADIANS, None)
        return m

    def denormalizeGeographicOutputs(self, lon0):
        """
        Appends a conversion of the first two output coordinates, longitude and
        latitude in radians, to degrees. The `lon0` central meridian is added
        to the longitude after the conversion.

        :param float lon0: central meridian in degrees
        :return: the denormalization matrix
        """
        m = self.getMatrix(MatrixRole.DENORMALIZATION)
        offset = DoubleDouble.of(lon0, decimal=True) if lon0 != 0 else None
        m.convertAfter(0, DoubleDouble.RADIANS_TO_DEGREES, offset)
        m.convertAfter(1, DoubleDouble.RADIANS_TO_DEGREES, None)
        return m

    def completeTransform(self, factory, kernel):
        """
        Concatenates the normalization, the kernel and the denormalization.
        The parameters are frozen afterwards.

        :param factory: the :class:`~mathtransform.transform.factory.MathTransformFactory` to use
        :param kernel: the non-linear transform working on normalized coordinates
        :raise MismatchedDimensionError: if the dimensions of the kernel do not fit the matrices
        """
        if kernel.sourceDim != self._normalize.numRow - 1:
            raise MismatchedDimensionError('Kernel expects {} source dimensions but normalization produces {}.'.format(
                                            kernel.sourceDim, self._normalize.numRow - 1),
                                           self._normalize.numRow - 1, kernel.sourceDim)
        if kernel.targetDim != self._denormalize.numCol - 1:
            raise MismatchedDimensionError('Kernel produces {} target dimensions but denormalization expects {}.'.format(
                                            kernel.targetDim, self._denormalize.numCol - 1),
                                           self._denormalize.numCol - 1, kernel.targetDim)
        self.freeze()
        normalize = factory.createAffineTransform(self._normalize)
        denormalize = factory.createAffineTransform(self._denormalize)
        return factory.createConcatenatedTransform(normalize, kernel, denormalize)

    def inverse(self, descriptor, mapper=None):
        """
        Returns the parameters of the inverse chain. The result is computed once
        for each (descriptor, mapper) pair. Inverting the result with the descriptor
        of this instance and the same mapper gives back this instance.

        :param ParameterDescriptorGroup descriptor: the parameters of the inverse operation
        :param mapper: function ``(forwardParameters, name) -> value or None`` deciding the
            value of each inverse parameter; if None, values are copied by name
        :rtype: ContextualParameters
        """
        with self._lock:
            key = (descriptor, mapper)
            if key not in self._inverses:
                self.freeze()
                inverse = ContextualParameters(descriptor, self._denormalize.numCol - 1,
                                               self._normalize.numRow - 1)
                inverse._normalize = self.getMatrix(MatrixRole.INVERSE_DENORMALIZATION)
                inverse._denormalize = self.getMatrix(MatrixRole.INVERSE_NORMALIZATION)
                for name in descriptor.parameters:
                    if mapper is not None:
                        value = mapper(self, name)
                    elif name in self._values:
                        value = self._values[name][0]
                    else:
                        value = None
                    if value is not None:
                        inverse._values[name] = (float(value), self.unit(name))
                inverse._inverses[(self._descriptor, mapper)] = self
                inverse.freeze()
                self._inverses[key] = inverse
            return self._inverses[key]

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.RLock()

    def __eq__(self, other):
        if not isinstance(other, ContextualParameters):
            return NotImplemented
        return (self._descriptor == other._descriptor and
                self._normalize == other._normalize and
                self._denormalize == other._denormalize and
                self._values == other._values)

    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    def __hash__(self):
        return hash((self._descriptor, self._normalize, self._denormalize))

    def __repr__(self):
        params = ', '.join('{}={!r}'.format(k, v) for k, v in self.values().items())
        return 'ContextualParameters[{}]({})'.format(self._descriptor.name, params)
