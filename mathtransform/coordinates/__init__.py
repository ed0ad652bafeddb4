"""
This package contains the non-linear kernels for converting coordinates between
ellipsoidal, geocentric, spherical, polar and cylindrical representations
(:mod:`~mathtransform.coordinates.ellipsoid` and :mod:`~mathtransform.coordinates.cartesian`),
for applying datum shift grids (:mod:`~mathtransform.coordinates.interpolated`)
and for rotating the poles of a sphere (:mod:`~mathtransform.coordinates.rotation`).

The vectorized formulas the kernels are built on are in :mod:`~mathtransform.coordinates.transform`
and can be re-used generically on plain numpy arrays.
"""
