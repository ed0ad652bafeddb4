"""
This package contains the :class:`~mathtransform.matrix.matrix.Matrix` type
used for describing linear transforms and derivatives, and the extended precision
numbers (:mod:`~mathtransform.matrix.doubledouble`) its elements are stored in.
"""

from mathtransform.matrix.doubledouble import DoubleDouble
from mathtransform.matrix.matrix import Matrix
