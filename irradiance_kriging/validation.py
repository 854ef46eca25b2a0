"""
Cross Validation
----------------

k-fold and leave-one-out cross-validation of Ordinary Kriging with a fixed
variogram model.

Each fold of observations is withheld in turn and predicted from the remaining
observations. The residuals (observed - predicted) are summarised as:

* RMSE: root mean squared residual;
* nRMSE: RMSE as a percentage of the mean observed value;
* skill ratio: 1 - RMSE / RMSE_persistence, where RMSE_persistence is the
  error of predicting every observation by the mean of all observations.
  A positive skill ratio indicates that Kriging beats that baseline.

The variogram model is not re-fitted for each fold, so the validation
error is optimistic if the model was fitted to the same observations.
"""

from dataclasses import dataclass
import logging
from warnings import warn
import numpy as np
import polars as pl
from sklearn.metrics import mean_absolute_error, mean_squared_error

from .constants import DEFAULT_FOLDS, DEFAULT_SEED
from .errors import InsufficientFoldData
from .kriging import OrdinaryKriging
from .observations import SampleSet
from .variogram import VariogramModel


@dataclass(frozen=True)
class ValidationReport:
    """
    Cross-validation metrics and per-observation results.

    Parameters
    ----------
    rmse : float
        Root mean squared residual.
    nrmse_percent : float
        RMSE as a percentage of the mean observed value. NaN if the mean
        observed value is 0.
    skill_ratio : float
        1 - RMSE / RMSE_persistence. Exactly 0 if the observations are
        constant.
    rmse_persistence : float
        RMSE of predicting every observation by the mean observed value.
    mean_error : float
        Mean residual (observed - predicted), the bias of the predictions.
    mae : float
        Mean absolute residual.
    n_folds : int
        Number of folds used.
    observed : numpy.ndarray
        Observed values, in SampleSet order.
    predicted : numpy.ndarray
        Cross-validated predictions, in SampleSet order.
    variances : numpy.ndarray
        Kriging variances of the predictions.
    folds : numpy.ndarray
        Fold index of each observation.
    """

    rmse: float
    nrmse_percent: float
    skill_ratio: float
    rmse_persistence: float
    mean_error: float
    mae: float
    n_folds: int
    observed: np.ndarray
    predicted: np.ndarray
    variances: np.ndarray
    folds: np.ndarray

    @property
    def residuals(self) -> np.ndarray:
        """Observed - predicted, in SampleSet order"""
        return self.observed - self.predicted

    def summary(self) -> dict[str, float]:
        """The scalar metrics"""
        return {
            "rmse": self.rmse,
            "nrmse_percent": self.nrmse_percent,
            "skill_ratio": self.skill_ratio,
            "rmse_persistence": self.rmse_persistence,
            "mean_error": self.mean_error,
            "mae": self.mae,
            "n_folds": self.n_folds,
        }

    def to_frame(self) -> pl.DataFrame:
        """Per-observation results as a polars.DataFrame"""
        return pl.DataFrame(
            {
                "fold": self.folds,
                "observed": self.observed,
                "predicted": self.predicted,
                "variance": self.variances,
                "residual": self.residuals,
            }
        )


def assign_folds(
    n: int,
    folds: int = DEFAULT_FOLDS,
    seed: int = DEFAULT_SEED,
) -> list[np.ndarray]:
    """
    Partition observation indices into folds.

    If `folds >= n` every observation is its own fold (leave-one-out), in
    input order. Otherwise the indices are shuffled with a generator seeded by
    `seed` and split into `folds` folds of nearly equal size.

    Parameters
    ----------
    n : int
        Number of observations.
    folds : int
        Number of folds requested.
    seed : int
        Seed for the shuffle.

    Returns
    -------
    folds : list[numpy.ndarray]
        Sorted observation indices of each fold.
    """
    if folds < 2:
        raise InsufficientFoldData(
            f"At least 2 folds are required, got {folds}",
            operation="cross_validate",
            parameter="folds",
        )
    if folds >= n:
        return [np.array([i]) for i in range(n)]
    rng = np.random.default_rng(seed)
    order = rng.permutation(n)
    return [np.sort(fold) for fold in np.array_split(order, folds)]


def cross_validate(
    samples: SampleSet,
    model: VariogramModel,
    folds: int = DEFAULT_FOLDS,
    seed: int = DEFAULT_SEED,
    time_scale: float | None = None,
) -> ValidationReport:
    """
    Cross-validate Ordinary Kriging with a fixed variogram model.

    Parameters
    ----------
    samples : SampleSet
        The observations.
    model : VariogramModel
        The variogram model. This is used for every fold without re-fitting.
    folds : int
        Number of folds. If greater than or equal to the number of
        observations, leave-one-out cross-validation is performed.
    seed : int
        Seed used to assign observations to folds.
    time_scale : float | None
        Scaling of observation times for spatiotemporal distances.

    Returns
    -------
    report : ValidationReport

    Raises
    ------
    InsufficientFoldData
        If any fold would leave fewer than 2 observations to Krige from.
    SingularKrigingSystem
        If any withheld observation cannot be predicted.
    """
    n = len(samples)
    if n < 3:
        raise InsufficientFoldData(
            f"At least 3 observations are required, got {n}",
            operation="cross_validate",
            parameter="samples",
        )
    fold_idx = assign_folds(n, folds, seed)
    for fold in fold_idx:
        if n - len(fold) < 2:
            raise InsufficientFoldData(
                f"Fold of {len(fold)} leaves {n - len(fold)} of {n} "
                + "observations, at least 2 are required",
                operation="cross_validate",
                parameter="samples",
            )

    observed = samples.values
    predicted = np.full(n, np.nan)
    variances = np.full(n, np.nan)
    fold_of = np.zeros(n, dtype=int)
    for f, fold in enumerate(fold_idx):
        train = samples.drop(fold)
        test = samples.subset(fold)
        krig = OrdinaryKriging(train, model, time_scale=time_scale)
        for i, result in zip(fold, krig.predict(o.location for o in test)):
            if result.error is not None:
                raise result.error
            predicted[i] = result.predicted_value
            variances[i] = result.prediction_variance
        fold_of[fold] = f

    report = _summarise(observed, predicted, variances, fold_of, len(fold_idx))
    logging.info(
        f"Cross-validation ({report.n_folds} folds, n = {n}): "
        + f"RMSE = {report.rmse:.4g}, nRMSE = {report.nrmse_percent:.3g}%, "
        + f"skill = {report.skill_ratio:.3g}"
    )
    return report


def _summarise(
    observed: np.ndarray,
    predicted: np.ndarray,
    variances: np.ndarray,
    folds: np.ndarray,
    n_folds: int,
) -> ValidationReport:
    rmse = float(np.sqrt(mean_squared_error(observed, predicted)))

    mean_obs = float(np.mean(observed))
    if mean_obs == 0.0:
        warn("Mean observed value is 0, nRMSE is undefined.")
        nrmse = np.nan
    else:
        nrmse = rmse / mean_obs * 100.0

    # Constant observations: the mean is a perfect predictor
    if np.all(observed == observed[0]):
        rmse_persistence = 0.0
    else:
        rmse_persistence = float(np.sqrt(np.mean((observed - mean_obs) ** 2)))
    skill = 0.0 if rmse_persistence == 0.0 else 1.0 - rmse / rmse_persistence

    return ValidationReport(
        rmse=rmse,
        nrmse_percent=float(nrmse),
        skill_ratio=float(skill),
        rmse_persistence=rmse_persistence,
        mean_error=float(np.mean(observed - predicted)),
        mae=float(mean_absolute_error(observed, predicted)),
        n_folds=n_folds,
        observed=observed,
        predicted=predicted,
        variances=variances,
        folds=folds,
    )
