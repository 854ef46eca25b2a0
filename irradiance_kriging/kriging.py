r"""
Functions for performing Kriging.

Interpolation of point observations to arbitrary target locations using
Ordinary Kriging with a variogram model.

The Ordinary Kriging weights :math:`w` and Lagrange multiplier :math:`\mu` for
a target location :math:`x_0` solve the bordered system:

.. math::
    \begin{bmatrix} \Gamma & 1 \\ 1^T & 0 \end{bmatrix}
    \begin{bmatrix} w \\ \mu \end{bmatrix}
    =
    \begin{bmatrix} \gamma_0 \\ 1 \end{bmatrix}

Where :math:`\Gamma_{ij} = \gamma(x_i - x_j)` is the variogram between
observation locations and :math:`\gamma_{0,i} = \gamma(x_0 - x_i)` is the
variogram between the target and each observation. The last row enforces
:math:`\sum w_i = 1`.

The left-hand side does not depend on the target, so it is LU-factorised once
and the factorisation is re-used for every target.

The system is dense with side length n + 1 for n observations: memory scales
with n^2 and the factorisation with n^3, which limits the practical size of a
SampleSet to a few thousand observations.
"""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
import logging
import warnings
import numpy as np
import polars as pl
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve

from .constants import COINCIDENT_ATOL, PIVOT_RTOL
from .distances import distance_matrix
from .errors import InsufficientData, SingularKrigingSystem
from .observations import SampleSet
from .utils import chunked, clamp_negative_variance
from .variogram import VariogramModel


@dataclass(frozen=True)
class PredictionResult:
    """
    Kriging prediction at a single target location.

    Parameters
    ----------
    location : tuple[float, ...]
        The target location, as input.
    predicted_value : float
        The Kriging estimate. NaN if the system could not be solved.
    prediction_variance : float
        The Kriging variance, non-negative. NaN if the system could not be
        solved.
    variance_clamped : bool
        Whether a negative variance was computed and set to 0.
    error : SingularKrigingSystem | None
        The reason the target could not be predicted, if any.
    """

    location: tuple[float, ...]
    predicted_value: float
    prediction_variance: float
    variance_clamped: bool = False
    error: SingularKrigingSystem | None = None

    @property
    def ok(self) -> bool:
        """Whether the target was predicted"""
        return self.error is None


class OrdinaryKriging:
    """
    Class for OrdinaryKriging.

    The bordered variogram matrix of the observations is built and factorised
    on construction. Predictions for any number of targets then re-use the
    factorisation.

    Parameters
    ----------
    samples : SampleSet
        The observations to Krige from.
    model : VariogramModel
        The variogram model.
    time_scale : float | None
        If set, observation and target times (multiplied by `time_scale`) are
        treated as an additional coordinate. Targets must then be given as
        (x, y, t). Otherwise only the spatial coordinates are used.
    """

    def __init__(
        self,
        samples: SampleSet,
        model: VariogramModel,
        time_scale: float | None = None,
    ) -> None:
        if len(samples) < 1:
            raise InsufficientData(
                "At least 1 observation is required for Kriging",
                operation="krige",
                parameter="samples",
            )
        self.samples = samples
        self.model = model
        self.time_scale = time_scale
        self.coords = samples.coords(time_scale)
        self.values = samples.values
        self._factorise()
        return None

    def _factorise(self) -> None:
        N = len(self.values)
        obs_obs = self.model.matrix(self.coords)

        # Add Lagrange multiplier
        system = np.block(
            [[obs_obs, np.ones((N, 1))], [np.ones((1, N)), np.zeros((1, 1))]]
        )
        with warnings.catch_warnings():
            # Singularity is checked explicitly from the pivots
            warnings.simplefilter("ignore", LinAlgWarning)
            lu, piv = lu_factor(system)

        pivots = np.abs(np.diag(lu))
        tol = PIVOT_RTOL * np.abs(system).max()
        if not np.all(np.isfinite(lu)) or pivots.min() <= tol:
            logging.warning(
                f"Kriging system for {N} observations is singular "
                + f"(smallest pivot = {pivots.min():.3g}), "
                + "targets will not be predicted."
            )
            self._lu = None
            return None
        self._lu = (lu, piv)
        return None

    @property
    def is_singular(self) -> bool:
        """Whether the Kriging system could not be factorised"""
        return self._lu is None

    def _target_coords(self, targets: Sequence[Sequence[float]]) -> np.ndarray:
        arr = np.atleast_2d(np.asarray(targets, dtype=float))
        if arr.ndim != 2 or arr.shape[1] not in (2, 3):
            raise ValueError("Targets must be (x, y) or (x, y, t) locations")
        if self.time_scale is None:
            return arr[:, :2]
        if arr.shape[1] != 3:
            raise ValueError("Targets must be (x, y, t) if time_scale is set")
        return np.column_stack([arr[:, :2], arr[:, 2] * self.time_scale])

    def weights(self, target: Sequence[float]) -> tuple[np.ndarray, float]:
        """
        Compute the Kriging weights for a single target.

        Parameters
        ----------
        target : Sequence[float]
            The target location.

        Returns
        -------
        weights : numpy.ndarray
            The Kriging weight of each observation. These sum to 1.
        mu : float
            The Lagrange multiplier.

        Raises
        ------
        SingularKrigingSystem
            If the system cannot be solved.
        """
        if self._lu is None:
            raise SingularKrigingSystem(
                "Kriging system is singular",
                operation="weights",
                parameter="samples",
            )
        coords = self._target_coords([target])
        gamma0 = self.model.matrix(coords, self.coords)[0]
        sol = lu_solve(self._lu, np.append(gamma0, 1.0), check_finite=False)
        if not np.all(np.isfinite(sol)):
            raise SingularKrigingSystem(
                f"Kriging system could not be solved for target {target}",
                operation="weights",
                parameter="target",
            )
        return sol[:-1], float(sol[-1])

    def predict(
        self,
        targets: Iterable[Sequence[float]],
        batch_size: int = 1024,
    ) -> Iterator[PredictionResult]:
        """
        Predict values at target locations.

        Targets are solved in batches of `batch_size` against the shared
        factorisation. Results are yielded in the order of the targets. A
        target whose system cannot be solved is yielded with NaN values and
        its `error` set, the remaining targets are still predicted.

        A target that coincides with an observation location is given the
        observed value, with variance 0, even if the system is singular.

        Parameters
        ----------
        targets : Iterable[Sequence[float]]
            Target locations, (x, y) or (x, y, t).
        batch_size : int
            Number of targets solved together.

        Yields
        ------
        result : PredictionResult
        """
        for batch in chunked(targets, batch_size):
            locations = [tuple(float(c) for c in t) for t in batch]
            coords = self._target_coords(locations)
            dist = distance_matrix(coords, self.coords)

            sol = None
            if self._lu is not None:
                gamma0 = self.model.matrix(coords, self.coords)
                rhs = np.vstack([gamma0.T, np.ones((1, len(locations)))])
                # Non-finite columns are reported per target below
                sol = lu_solve(self._lu, rhs, check_finite=False)

            for k, loc in enumerate(locations):
                nearest = int(np.argmin(dist[k]))
                if dist[k, nearest] <= COINCIDENT_ATOL:
                    yield PredictionResult(
                        location=loc,
                        predicted_value=float(self.values[nearest]),
                        prediction_variance=0.0,
                    )
                    continue

                if sol is None:
                    yield self._failed(loc, "Kriging system is singular")
                    continue

                col = sol[:, k]
                if not np.all(np.isfinite(col)):
                    logging.warning(f"Could not solve Kriging system at {loc}")
                    yield self._failed(
                        loc, f"Kriging system could not be solved at {loc}"
                    )
                    continue

                w, mu = col[:-1], col[-1]
                variance, clamped = clamp_negative_variance(
                    float(w @ gamma0[k] + mu)
                )
                yield PredictionResult(
                    location=loc,
                    predicted_value=float(w @ self.values),
                    prediction_variance=variance,
                    variance_clamped=clamped,
                )

    def predict_array(
        self,
        targets: Iterable[Sequence[float]],
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Predict values at target locations, returning arrays.

        Returns
        -------
        values : numpy.ndarray
            The Kriging estimates, NaN where the system could not be solved.
        variances : numpy.ndarray
            The Kriging variances, NaN where the system could not be solved.
        """
        results = list(self.predict(targets))
        values = np.array([r.predicted_value for r in results], dtype=float)
        variances = np.array(
            [r.prediction_variance for r in results], dtype=float
        )
        return values, variances

    @staticmethod
    def _failed(location: tuple[float, ...], message: str) -> PredictionResult:
        return PredictionResult(
            location=location,
            predicted_value=np.nan,
            prediction_variance=np.nan,
            error=SingularKrigingSystem(
                message, operation="krige", parameter="targets"
            ),
        )


def krige(
    samples: SampleSet,
    model: VariogramModel,
    targets: Iterable[Sequence[float]],
    time_scale: float | None = None,
) -> Iterator[PredictionResult]:
    """
    Ordinary Kriging of observations to a set of target locations.

    Parameters
    ----------
    samples : SampleSet
        The observations.
    model : VariogramModel
        The variogram model, typically the output of `fit_variogram`.
    targets : Iterable[Sequence[float]]
        Target locations, (x, y) or (x, y, t).
    time_scale : float | None
        Scaling of observation times for spatiotemporal distances. If not set,
        only spatial coordinates are used.

    Returns
    -------
    results : Iterator[PredictionResult]
        One result per target, in the order of the targets. The iterator can
        only be consumed once.
    """
    return OrdinaryKriging(samples, model, time_scale=time_scale).predict(
        targets
    )


def results_to_frame(results: Iterable[PredictionResult]) -> pl.DataFrame:
    """
    Convert Kriging results to a polars.DataFrame.

    The DataFrame has columns "x", "y", ("t"), "predicted_value",
    "prediction_variance", "variance_clamped" and "error".
    """
    results = list(results)
    has_time = bool(results) and len(results[0].location) == 3
    data: dict[str, list] = {
        "x": [r.location[0] for r in results],
        "y": [r.location[1] for r in results],
    }
    if has_time:
        data["t"] = [r.location[2] for r in results]
    data["predicted_value"] = [r.predicted_value for r in results]
    data["prediction_variance"] = [r.prediction_variance for r in results]
    data["variance_clamped"] = [r.variance_clamped for r in results]
    data["error"] = [None if r.ok else str(r.error) for r in results]
    schema = {k: pl.Float64 for k in data}
    schema["variance_clamped"] = pl.Boolean
    schema["error"] = pl.String
    return pl.DataFrame(data, schema=schema)
