# Copyright European Space Agency, 2013

"""
Numeric thresholds and small helper functions shared by the transforms.
"""

import math
import struct

# relative threshold used when comparing transforms in approximate mode
COMPARISON_THRESHOLD = 1e-13

# convergence threshold of iterative inverses, in radians
ANGULAR_TOLERANCE = 1e-13

# convergence threshold of iterative inverses, in normalized linear units
LINEAR_TOLERANCE = 1e-12

MAXIMUM_ITERATIONS = 15

# Sign applied to the axis angle of north pole rotations.
# The convention for south pole rotations is fixed, this one may change
# in a future version.
NORTH_POLE_AXIS_ANGLE_SIGN = 1

def bits(value):
    """
    Returns the raw IEEE 754 representation of a float.
    Unlike ``==``, this distinguishes -0.0 from 0.0 and
    NaN values with different payloads.
    
    :rtype: bytes
    """
    return struct.pack('<d', value)

def strictEquals(a, b):
    return bits(a) == bits(b)

def epsilonEqual(a, b, threshold=COMPARISON_THRESHOLD):
    """
    Compares two floats with a tolerance relative to their magnitude,
    considering all NaN values as equal.
    """
    if math.isnan(a) or math.isnan(b):
        return math.isnan(a) and math.isnan(b)
    if a == b:
        return True
    return abs(a - b) <= threshold * max(1.0, abs(a), abs(b))
