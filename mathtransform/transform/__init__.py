"""
This package contains the transform types and the functions for creating and combining them.

The functions of this module do not intern the transforms they create, use a
:class:`~mathtransform.transform.factory.MathTransformFactory` for that.

Transforms applied one after the other::

    t = concatenate(scale(2, 2), translation(1, -1))
    t.transform([1, 1]) # array([ 3.,  1.])

"""

import numpy as np

from mathtransform.matrix import Matrix
from mathtransform.transform.base import ComparisonMode
from mathtransform.transform.concatenated import getSteps, getFirstStep, getLastStep
from mathtransform.transform.factory import MathTransformFactory
from mathtransform.transform.linear import LinearTransform, IdentityTransform

_factory = MathTransformFactory(caching=False)

def identity(dimension):
    return IdentityTransform.create(dimension)

def linear(matrix):
    """
    :param matrix: a :class:`~mathtransform.matrix.Matrix` or 2D array-like
        in homogeneous coordinates
    """
    return _factory.createAffineTransform(matrix)

def translation(*offsets):
    n = len(offsets)
    return linear(Matrix.createAffine(np.identity(n), offsets))

def scale(*factors):
    n = len(factors)
    return linear(Matrix.createAffine(np.diag(factors), np.zeros(n)))

def concatenate(*transforms):
    """
    Returns a transform applying the given transforms in order.

    :raise MismatchedDimensionError: if two neighbors have incompatible dimensions
    """
    return _factory.createConcatenatedTransform(*transforms)

def passThrough(firstAffectedCoordinate, subTransform, numTrailingCoordinates):
    return _factory.createPassThroughTransform(firstAffectedCoordinate, subTransform, numTrailingCoordinates)

def passThroughIndexed(modifiedCoordinates, subTransform, resultDim):
    return _factory.createIndexedPassThroughTransform(modifiedCoordinates, subTransform, resultDim)

def compound(*transforms):
    return _factory.createCompoundTransform(*transforms)

def specialize(globalTransform, specializations):
    return _factory.createSpecializableTransform(globalTransform, specializations)

def getMatrix(transform):
    """
    Returns the matrix of a linear transform, or None if the transform is not linear.
    """
    if isinstance(transform, LinearTransform):
        return transform.getMatrix()
    return None

def derivativeAndTransform(transform, point):
    """
    :rtype: tuple (derivative Matrix, transformed point)
    """
    return transform.derivativeAndTransform(point)
