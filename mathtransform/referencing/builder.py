# Copyright European Space Agency, 2013

"""
Creates the transform between two coordinate systems from the kinds of
their components.

For each pair of source and target components, a kernel is looked up by
``(sourceKind, targetKind)``. The kernel works on normalized coordinates
(see :meth:`~mathtransform.referencing.cs.CoordinateSystem.normalized`) and is
wrapped between two affine steps adapting the axis order, axis signs and units.

Usage::

    builder = CoordinateSystemTransformBuilder()
    builder.setSourceAxes(geographicCS, WGS84)
    builder.setTargetAxes(geocentricCS)
    transform = builder.create()
"""

import logging
from collections import OrderedDict

import astropy.units as u
import numpy as np

from mathtransform.errors import OperationNotFoundError, MissingParameterError, AlreadyInitializedError
from mathtransform.matrix import Matrix
from mathtransform.transform.factory import MathTransformFactory
from mathtransform.coordinates.cartesian import SphericalToCartesian, CartesianToSpherical, PolarToCartesian,\
    cylindricalToCartesian
from mathtransform.coordinates.ellipsoid import EllipsoidToRadiusTransform, EllipsoidToCentricTransform
from mathtransform.referencing.cs import CSKind, swapAndScaleAxes

def _requireEllipsoid(ellipsoid):
    if ellipsoid is None:
        raise MissingParameterError('ellipsoid')
    return ellipsoid.inUnit(u.m)

def _radius(factory, ellipsoid):
    """
    (λ, Ω) in radians to (λ, Ω, R) with R in metres.
    """
    ellipsoid = _requireEllipsoid(ellipsoid)
    kernel = EllipsoidToRadiusTransform(ellipsoid.eccentricitySquared)
    scale = factory.createAffineTransform(np.diag([1, 1, ellipsoid.semiMinorAxis, 1]))
    return factory.createConcatenatedTransform(kernel, scale)

def _sphericalToCartesian(factory, source, target, ellipsoid):
    if source.dimension == 2:
        return factory.createConcatenatedTransform(_radius(factory, ellipsoid), SphericalToCartesian.INSTANCE)
    return SphericalToCartesian.INSTANCE

def _polarToCartesian(factory, source, target, ellipsoid):
    return PolarToCartesian.INSTANCE

def _cylindricalToCartesian(factory, source, target, ellipsoid):
    return cylindricalToCartesian(factory)

def _ellipsoidalToCartesian(factory, source, target, ellipsoid):
    ellipsoid = _requireEllipsoid(ellipsoid)
    return EllipsoidToCentricTransform.createGeodeticConversion(factory, ellipsoid,
                                                                withHeight=source.dimension == 3)

def _ellipsoidalToSpherical(factory, source, target, ellipsoid):
    steps = [_ellipsoidalToCartesian(factory, source, None, ellipsoid),
             CartesianToSpherical.INSTANCE]
    if target.dimension == 2:
        steps.append(_radius(factory, ellipsoid).inverse())
    return factory.createConcatenatedTransform(*steps)

def _reverse(kernel):
    def create(factory, source, target, ellipsoid):
        return kernel(factory, target, source, ellipsoid).inverse()
    return create

_KERNELS = {
    (CSKind.SPHERICAL, CSKind.CARTESIAN): _sphericalToCartesian,
    (CSKind.POLAR, CSKind.CARTESIAN): _polarToCartesian,
    (CSKind.CYLINDRICAL, CSKind.CARTESIAN): _cylindricalToCartesian,
    (CSKind.ELLIPSOIDAL, CSKind.CARTESIAN): _ellipsoidalToCartesian,
    (CSKind.ELLIPSOIDAL, CSKind.SPHERICAL): _ellipsoidalToSpherical,
}
for (_src, _tgt), _kernel in list(_KERNELS.items()):
    _KERNELS[(_tgt, _src)] = _reverse(_kernel)
del _src, _tgt, _kernel

def _addHeight():
    """
    (λ, φ) to (λ, φ, 0).
    """
    m = Matrix(4, 3)
    m.setElement(0, 0, 1)
    m.setElement(1, 1, 1)
    m.setElement(3, 2, 1)
    return m

def _kinds(cs):
    return tuple(c.kind for c in cs.components)

class CoordinateSystemTransformBuilder(object):
    """
    Builds the transform between a source and a target coordinate system.
    A builder creates a single transform.

    :param factory: the :class:`~mathtransform.transform.factory.MathTransformFactory`
        used for creating all steps, by default the shared caching factory
    """
    def __init__(self, factory=None):
        self._factory = factory if factory is not None else MathTransformFactory.provider()
        self._source = None
        self._target = None
        self._sourceEllipsoid = None
        self._targetEllipsoid = None
        self._created = False

    def setSourceAxes(self, cs, ellipsoid=None):
        """
        :param cs: a :class:`~mathtransform.referencing.cs.CoordinateSystem` or
            :class:`~mathtransform.referencing.cs.CompoundCS`
        :param ellipsoid: :class:`~mathtransform.coordinates.geodesic.Ellipsoid`,
            required for ellipsoidal coordinate systems
        :raise AlreadyInitializedError: if the source axes are already set
        """
        if self._source is not None:
            raise AlreadyInitializedError('Source axes are already set.')
        self._source = cs
        self._sourceEllipsoid = ellipsoid

    def setTargetAxes(self, cs, ellipsoid=None):
        if self._target is not None:
            raise AlreadyInitializedError('Target axes are already set.')
        self._target = cs
        self._targetEllipsoid = ellipsoid

    def parameters(self):
        """
        Describes the requested operation.

        :rtype: OrderedDict
        """
        params = OrderedDict()
        for prefix, cs, ellipsoid in (('source', self._source, self._sourceEllipsoid),
                                      ('target', self._target, self._targetEllipsoid)):
            params[prefix + '_kinds'] = tuple(k.name for k in _kinds(cs)) if cs is not None else None
            params[prefix + '_dimension'] = cs.dimension if cs is not None else None
            if ellipsoid is not None:
                params[prefix + '_semi_major'] = ellipsoid.semiMajorAxis * ellipsoid.unit
                params[prefix + '_semi_minor'] = ellipsoid.semiMinorAxis * ellipsoid.unit
        return params

    def create(self):
        """
        Creates the transform from the source to the target axes.

        :raise MissingParameterError: if the source or target axes are not set,
            or if the conversion needs an ellipsoid and none was given
        :raise AlreadyInitializedError: if this builder was already used
        :raise OperationNotFoundError: if there is no kernel for the coordinate system kinds
        :raise IncommensurableError: if the units of two matching axes can not be converted
        """
        if self._source is None:
            raise MissingParameterError('source')
        if self._target is None:
            raise MissingParameterError('target')
        if self._created:
            raise AlreadyInitializedError('This builder was already used.')
        self._created = True

        sources = self._source.components
        targets = self._target.components
        if len(sources) == len(targets):
            try:
                steps = [self._createComponent(s, t) for s, t in zip(sources, targets)]
                return self._factory.createCompoundTransform(*steps)
            except OperationNotFoundError as e:
                if len(sources) == 1:
                    raise
                logging.debug('Per-component lookup failed, trying whole coordinate systems: ' + str(e))
        else:
            logging.debug('Source has ' + str(len(sources)) + ' components and target ' + str(len(targets)) +
                          ', trying whole coordinate systems')

        source = self._source.asSingle()
        target = self._target.asSingle()
        if source is None or target is None:
            raise OperationNotFoundError(_kinds(self._source), _kinds(self._target))
        return self._createComponent(source, target)

    def _ellipsoid(self):
        return self._sourceEllipsoid if self._sourceEllipsoid is not None else self._targetEllipsoid

    def _createComponent(self, source, target):
        factory = self._factory
        if source.kind is target.kind:
            kernel = self._sameKind(source, target)
            if kernel is None:
                return factory.createAffineTransform(swapAndScaleAxes(source, target))
        else:
            create = _KERNELS.get((source.kind, target.kind))
            if create is None:
                raise OperationNotFoundError((source.kind,), (target.kind,))
            kernel = create(factory, source, target, self._ellipsoid())
        sourceNorm = source.normalized()
        targetNorm = target.normalized()
        if kernel.sourceDim != source.dimension or kernel.targetDim != target.dimension:
            raise OperationNotFoundError((source.kind,), (target.kind,),
                'No operation from {}-D {} to {}-D {} coordinate system.'.format(
                 source.dimension, source.kind.name.lower(), target.dimension, target.kind.name.lower()))
        before = factory.createAffineTransform(swapAndScaleAxes(source, sourceNorm))
        after = factory.createAffineTransform(swapAndScaleAxes(targetNorm, target))
        return factory.createConcatenatedTransform(before, kernel, after)

    def _sameKind(self, source, target):
        """
        Returns the kernel adding a dimension, or None if axis swapping is enough.
        """
        if target.dimension <= source.dimension:
            return None
        if source.kind is CSKind.SPHERICAL:
            return _radius(self._factory, self._ellipsoid())
        if source.kind is CSKind.ELLIPSOIDAL:
            return self._factory.createAffineTransform(_addHeight())
        raise OperationNotFoundError((source.kind,), (target.kind,),
            'Can not add dimensions to a {} coordinate system.'.format(source.kind.name.lower()))
