"""
The mathtransform package is split up in several packages and modules each covering
different aspects of coordinate transform algebra.

The :mod:`mathtransform.matrix` package contains the matrix type used to describe
affine and projective transforms, with coefficients stored in extended precision
(:mod:`~mathtransform.matrix.doubledouble`) so that long chains of concatenated
affine steps do not accumulate rounding errors.

The :mod:`mathtransform.transform` package contains the transform types themselves
and the functions to build and combine them: linear transforms, concatenations,
pass-through and specialization wrappers, and the normalize/kernel/denormalize
chain (:mod:`~mathtransform.transform.contextual`) used by all non-linear kernels.

The :mod:`mathtransform.coordinates` package contains the non-linear geodesy kernels
(geographic to geocentric conversions, spherical/polar/cylindrical conversions,
datum shift grid interpolation and pole rotation) together with the fast vectorized
formulas they are built on (:mod:`~mathtransform.coordinates.transform`).

The :mod:`mathtransform.referencing` package selects and assembles the kernels
needed to convert coordinates between two coordinate systems.

The :mod:`mathtransform.util` package contains independent generic helper functions not strictly related
to the main functions of this library.
"""

from ._version import __version__, __version_info__
