"""
This package describes coordinate systems (:mod:`~mathtransform.referencing.cs`)
and builds the transforms converting coordinates between two of them
(:mod:`~mathtransform.referencing.builder`).
"""
