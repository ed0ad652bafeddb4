# Copyright European Space Agency, 2013

"""
Exceptions raised by the transform algebra.

Errors raised while evaluating or inverting transforms derive from
:class:`TransformError`, errors raised while building transforms from
coordinate system descriptions derive from :class:`FactoryError`.
"""

class TransformError(Exception):
    pass

class MismatchedDimensionError(TransformError, ValueError):
    """
    Raised when the dimension of a transform, point or array does
    not match the dimension expected at that place.
    """
    def __init__(self, message, expected=None, actual=None):
        super(MismatchedDimensionError, self).__init__(message)
        self.expected = expected
        self.actual = actual

class NoninvertibleTransformError(TransformError):
    pass

class NoninvertibleMatrixError(NoninvertibleTransformError, ArithmeticError):
    pass

class FactoryError(Exception):
    pass

class OperationNotFoundError(FactoryError):
    """
    Raised when no kernel exists for converting coordinates between
    the given kinds of coordinate systems.
    """
    def __init__(self, sourceKinds, targetKinds, message=None):
        self.sourceKinds = tuple(sourceKinds)
        self.targetKinds = tuple(targetKinds)
        if message is None:
            message = 'No operation found from {} to {} coordinate system.'.format(
                         _kindNames(self.sourceKinds), _kindNames(self.targetKinds))
        super(OperationNotFoundError, self).__init__(message)

class MissingParameterError(FactoryError):
    def __init__(self, parameterName, message=None):
        self.parameterName = parameterName
        if message is None:
            message = 'Missing value for "{}" parameter.'.format(parameterName)
        super(MissingParameterError, self).__init__(message)

class AlreadyInitializedError(FactoryError):
    pass

class IncommensurableError(FactoryError):
    """
    Raised when a value in one unit cannot be converted to another unit,
    for example an angle to a length.
    """
    def __init__(self, sourceUnit, targetUnit):
        self.sourceUnit = sourceUnit
        self.targetUnit = targetUnit
        super(IncommensurableError, self).__init__(
            'Units "{}" and "{}" are incommensurable.'.format(sourceUnit, targetUnit))

def _kindNames(kinds):
    return ' + '.join(getattr(k, 'name', str(k)) for k in kinds)
