"""
Geostatistical interpolation of point observations of solar irradiance to a
continuous field, using variogram-based Ordinary Kriging, with
cross-validation of the prediction quality.
"""

from .errors import (
    DegenerateBinning,
    DuplicateLocationError,
    FitDidNotImprove,
    InsufficientData,
    InsufficientFoldData,
    KrigingError,
    NonPositiveVarianceClamped,
    SampleSetError,
    SingularKrigingSystem,
)
from .estimation import EmpiricalVariogram, SemivarianceBin, estimate_variogram
from .fitting import FitDiagnostics, fit_variogram
from .kriging import OrdinaryKriging, PredictionResult, krige
from .observations import Observation, SampleSet
from .utils import init_logging
from .validation import ValidationReport, cross_validate
from .variogram import (
    Anisotropy,
    ExponentialVariogram,
    GaussianVariogram,
    SphericalVariogram,
    VariogramModel,
)

__all__ = [
    "Anisotropy",
    "DegenerateBinning",
    "DuplicateLocationError",
    "EmpiricalVariogram",
    "ExponentialVariogram",
    "FitDiagnostics",
    "FitDidNotImprove",
    "GaussianVariogram",
    "InsufficientData",
    "InsufficientFoldData",
    "KrigingError",
    "NonPositiveVarianceClamped",
    "Observation",
    "OrdinaryKriging",
    "PredictionResult",
    "SampleSet",
    "SampleSetError",
    "SemivarianceBin",
    "SingularKrigingSystem",
    "SphericalVariogram",
    "ValidationReport",
    "VariogramModel",
    "cross_validate",
    "estimate_variogram",
    "fit_variogram",
    "init_logging",
    "krige",
]

__version__ = "0.1.0"
