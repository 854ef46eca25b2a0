"""
Errors and Warnings
-------------------

Error classes raised by the estimation pipeline, and warning categories used
for non-fatal diagnostics.

Errors derived from `KrigingError` carry the name of the `operation` that
raised them and the offending `parameter` (if any) so that callers can log or
report them without parsing the message.
"""


class KrigingError(Exception):
    """
    Base Error class for the geostatistical pipeline.

    Parameters
    ----------
    message : str
        Description of the error.
    operation : str | None
        Name of the operation that raised the error.
    parameter : str | None
        Name of the offending parameter, if applicable.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        parameter: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.parameter = parameter
        return None


class InsufficientData(KrigingError):
    """Too few observations for the requested operation"""

    pass


class DegenerateBinning(KrigingError):
    """The binning scheme produces no usable semivariance bins"""

    pass


class SingularKrigingSystem(KrigingError):
    """The Kriging system for a prediction target cannot be solved"""

    pass


class InsufficientFoldData(KrigingError):
    """A cross-validation fold leaves too few observations to Krige from"""

    pass


class SampleSetError(ValueError):
    """Invalid observations were used to construct a SampleSet"""

    pass


class DuplicateLocationError(SampleSetError):
    """Two or more observations share an identical location"""

    pass


class FitDidNotImprove(UserWarning):
    """The variogram fit could not improve on the initial guess"""

    pass


class NonPositiveVarianceClamped(UserWarning):
    """A negative Kriging variance was computed and set to 0"""

    pass
