"""
Variogram Fitting
-----------------

Fit parametric variogram models to an empirical variogram by weighted
non-linear least squares.

The objective is:

.. math::
    \\sum_k w_k (\\gamma_k - f(h_k; \\theta))^2

with Cressie weights :math:`w_k = N_k / h_k^2`, where :math:`N_k` is the
number of pairs in bin :math:`k` and :math:`h_k` its lag distance. This
favours bins with many pairs and short lags.

For anisotropic fits the empirical variogram must be directional. The
separation vector of each bin is reconstructed from its lag and direction,
and the model is evaluated at the anisotropic effective distance of that
vector.
"""

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import Any
from warnings import warn
import numpy as np
from scipy.optimize import least_squares

from .distances import anisotropic_distance
from .errors import FitDidNotImprove, InsufficientData
from .estimation import EmpiricalVariogram
from .types import VariogramFamily
from .variogram import VARIOGRAM_FAMILIES, Anisotropy, VariogramModel

_RATIO_FLOOR: float = 1e-3


@dataclass(frozen=True)
class FitDiagnostics:
    """
    Summary of a variogram fit.

    Parameters
    ----------
    initial_cost : float
        Weighted sum of squares at the initial guess.
    final_cost : float
        Weighted sum of squares of the returned model.
    n_evaluations : int
        Number of objective evaluations used by the optimiser.
    converged : bool
        Whether the optimiser met its convergence tolerance before the
        iteration limit.
    improved : bool
        Whether the returned model improves on the initial guess. If False, the
        returned model is the initial guess.
    message : str
        Message from the optimiser.
    """

    initial_cost: float
    final_cost: float
    n_evaluations: int
    converged: bool
    improved: bool
    message: str


def initial_guess_from_empirical(
    empirical: EmpiricalVariogram,
    family: VariogramFamily,
) -> VariogramModel:
    """
    Heuristic starting parameters for a variogram fit.

    The sill is the mean semivariance of the longer half of the lags, the
    nugget is the semivariance of the shortest lag (at most half of the sill)
    and the range is half of the longest lag.
    """
    if len(empirical) == 0:
        raise InsufficientData(
            "EmpiricalVariogram contains no bins",
            operation="initial_guess_from_empirical",
            parameter="empirical",
        )
    order = np.argsort(empirical.lags, kind="stable")
    lags = empirical.lags[order]
    gammas = empirical.gammas[order]

    sill = float(np.mean(gammas[len(gammas) // 2 :]))
    nugget = float(np.clip(gammas[0], 0.0, 0.5 * sill))
    return VariogramModel(
        family=family,
        nugget=nugget,
        partial_sill=max(sill - nugget, 0.0),
        range=float(lags[-1]) / 2,
    )


def initial_anisotropy(empirical: EmpiricalVariogram) -> Anisotropy:
    """
    Starting anisotropy from a directional empirical variogram.

    A slope through the origin is fitted to the semivariance of each direction
    sector. The direction with the shallowest slope (the longest range) is
    taken as the major axis, and the ratio of the shallowest to steepest
    slopes as the range ratio.
    """
    if empirical.directions is None:
        raise ValueError("Anisotropy requires a directional EmpiricalVariogram")
    slopes: dict[float, float] = {}
    for direction in empirical.directions:
        sub = empirical.for_direction(direction)
        if len(sub) == 0:
            continue
        lags, gammas = sub.lags, sub.gammas
        slopes[direction] = float(np.sum(gammas * lags) / np.sum(lags**2))

    positive = {d: s for d, s in slopes.items() if s > 0}
    if len(positive) < 2:
        return Anisotropy(angle=0.0, ratio=1.0)
    major = min(positive, key=lambda d: positive[d])
    ratio = positive[major] / max(positive.values())
    return Anisotropy(angle=major, ratio=float(np.clip(ratio, 0.05, 1.0)))


def _resolve_guess(
    empirical: EmpiricalVariogram,
    family: VariogramFamily | None,
    initial_guess: VariogramModel | Mapping[str, Any] | None,
    anisotropic: bool,
) -> VariogramModel:
    if initial_guess is None:
        if family is None:
            raise ValueError("One of family and initial_guess must be set")
        guess = initial_guess_from_empirical(empirical, family)
    elif isinstance(initial_guess, VariogramModel):
        guess = initial_guess
    else:
        params = dict(initial_guess)
        params.setdefault("family", family)
        guess = VariogramModel.from_dict(params)

    if family is not None and guess.family != family:
        guess = guess.with_parameters(family=family)
    if anisotropic and guess.anisotropy is None:
        guess = guess.with_parameters(anisotropy=initial_anisotropy(empirical))
    if not anisotropic and guess.anisotropy is not None:
        guess = guess.with_parameters(anisotropy=None)
    return guess


def _to_vector(model: VariogramModel) -> np.ndarray:
    theta = [model.nugget, model.partial_sill, model.range]
    if model.anisotropy is not None:
        theta.extend([model.anisotropy.angle, model.anisotropy.ratio])
    return np.array(theta, dtype=float)


def _from_vector(theta: np.ndarray, family: VariogramFamily) -> VariogramModel:
    anisotropy = None
    if len(theta) == 5:
        anisotropy = Anisotropy(
            angle=float(np.mod(theta[3], 180.0)),
            ratio=float(np.clip(theta[4], _RATIO_FLOOR, 1.0)),
        )
    return VariogramModel(
        family=family,
        nugget=max(float(theta[0]), 0.0),
        partial_sill=max(float(theta[1]), 0.0),
        range=float(theta[2]),
        anisotropy=anisotropy,
    )


def fit_variogram(
    empirical: EmpiricalVariogram,
    family: VariogramFamily | None = None,
    initial_guess: VariogramModel | Mapping[str, Any] | None = None,
    anisotropic: bool = False,
    tol: float = 1e-8,
    max_iter: int = 1000,
) -> tuple[VariogramModel, FitDiagnostics]:
    """
    Fit a variogram model to an empirical variogram.

    Uses `scipy.optimize.least_squares` with the trust region reflective
    method, so that the parameter bounds are respected: nugget >= 0,
    partial_sill >= 0, range > 0 and for anisotropic fits the ratio is in
    (0, 1]. The angle is axial with period 180 degrees, so it is fitted
    unbounded and folded into [0, 180) on return.

    If the optimiser cannot reduce the objective below its value at the
    initial guess, the initial guess is returned and a `FitDidNotImprove`
    warning is raised. This is not an error - a valid model is always
    returned.

    Parameters
    ----------
    empirical : EmpiricalVariogram
        The binned semivariance to fit.
    family : VariogramFamily | None
        Variogram family to fit, one of "spherical", "exponential",
        "gaussian". Overrides the family of `initial_guess` if both are set.
    initial_guess : VariogramModel | Mapping[str, Any] | None
        Starting parameters, as a VariogramModel or a mapping of the
        parameters accepted by `VariogramModel.from_dict`. If not set, a guess
        is derived from the empirical variogram.
    anisotropic : bool
        Fit geometric anisotropy (angle and ratio) in addition to the nugget,
        partial sill and range. Requires a directional empirical variogram.
    tol : float
        Convergence tolerance on the relative decrease of the objective.
    max_iter : int
        Maximum number of objective evaluations.

    Returns
    -------
    model : VariogramModel
        The fitted model.
    diagnostics : FitDiagnostics
        Details of the fit.

    Raises
    ------
    InsufficientData
        If the empirical variogram contains no bins.
    """
    if len(empirical) == 0:
        raise InsufficientData(
            "EmpiricalVariogram contains no bins",
            operation="fit_variogram",
            parameter="empirical",
        )
    if anisotropic and not empirical.is_directional:
        raise ValueError(
            "Anisotropic fitting requires a directional EmpiricalVariogram"
        )

    guess = _resolve_guess(empirical, family, initial_guess, anisotropic)
    family_cls = VARIOGRAM_FAMILIES[guess.family]

    lags = empirical.lags
    gammas = empirical.gammas
    sqrt_w = np.sqrt(empirical.pair_counts / lags**2)
    delta = None
    if anisotropic:
        bin_angle = np.radians(empirical.directions_array)
        delta = np.column_stack(
            [lags * np.cos(bin_angle), lags * np.sin(bin_angle)]
        )

    def _residuals(theta: np.ndarray) -> np.ndarray:
        if delta is not None:
            h = anisotropic_distance(delta, theta[3], theta[4])
        else:
            h = lags
        model = family_cls(psill=theta[1], nugget=theta[0], range=theta[2])
        return sqrt_w * (gammas - model.evaluate(h))

    range_floor = 1e-9 * float(lags.max())
    lower = [0.0, 0.0, range_floor]
    upper = [np.inf, np.inf, np.inf]
    if anisotropic:
        lower.extend([-np.inf, _RATIO_FLOOR])
        upper.extend([np.inf, 1.0])
    x0 = np.clip(_to_vector(guess), lower, upper)

    initial_cost = float(np.sum(_residuals(x0) ** 2))

    try:
        result = least_squares(
            _residuals,
            x0,
            bounds=(lower, upper),
            method="trf",
            x_scale="jac",
            ftol=tol,
            xtol=tol,
            max_nfev=max_iter,
        )
    except (ValueError, np.linalg.LinAlgError) as e:
        logging.warning(f"Variogram optimiser failed: {e}")
        return _no_improvement(guess, initial_cost, 0, False, str(e))

    final_cost = float(np.sum(result.fun**2))
    if not final_cost < initial_cost:
        return _no_improvement(
            guess, initial_cost, result.nfev, result.status > 0, result.message
        )

    fitted = _from_vector(result.x, guess.family)
    logging.info(
        f"Fitted {fitted.family} variogram: nugget = {fitted.nugget:.4g}, "
        + f"partial_sill = {fitted.partial_sill:.4g}, "
        + f"range = {fitted.range:.4g}"
        + (
            ""
            if fitted.anisotropy is None
            else f", angle = {fitted.anisotropy.angle:.4g}, "
            + f"ratio = {fitted.anisotropy.ratio:.4g}"
        )
    )
    return fitted, FitDiagnostics(
        initial_cost=initial_cost,
        final_cost=final_cost,
        n_evaluations=int(result.nfev),
        converged=bool(result.status > 0),
        improved=True,
        message=str(result.message),
    )


def _no_improvement(
    guess: VariogramModel,
    initial_cost: float,
    n_evaluations: int,
    converged: bool,
    message: str,
) -> tuple[VariogramModel, FitDiagnostics]:
    # A perfect initial guess cannot be improved on, that is not a failure
    if initial_cost > 0:
        warn(
            "Variogram fit did not improve on the initial guess "
            + f"(weighted SS = {initial_cost:.6g}). "
            + "Returning the initial guess.",
            FitDidNotImprove,
            stacklevel=3,
        )
    return guess, FitDiagnostics(
        initial_cost=initial_cost,
        final_cost=initial_cost,
        n_evaluations=int(n_evaluations),
        converged=converged,
        improved=False,
        message=str(message),
    )
