"""
Run the full estimation pipeline from a configuration dictionary:

    SampleSet -> EmpiricalVariogram -> VariogramModel -> Kriging predictions
                                                      -> cross-validation

The configuration has the following sections, all optional except
`variogram.bin_width`:

.. code-block:: yaml

    variogram:
      bin_width: 5.0
      cutoff: 60.0          # default: a third of the maximum distance
      directions: [0, 45, 90, 135]
      sector_half_width: 22.5
      time_scale: null      # set to use spatiotemporal distances
    model:
      family: exponential
      anisotropic: false
      initial_guess:        # default: derived from the empirical variogram
        nugget: 0.0
        partial_sill: 2000.0
        range: 20.0
      tol: 1.0e-8
      max_iter: 1000
    grid:
      resolution: 1.0
      x_bounds: [0.0, 100.0]
      y_bounds: [0.0, 100.0]
    validation:
      folds: 10
      seed: 0
"""

from dataclasses import dataclass
import logging
import xarray as xr

from .constants import DEFAULT_FOLDS, DEFAULT_SEED, SECTOR_HALF_WIDTH
from .estimation import EmpiricalVariogram, estimate_variogram
from .fitting import FitDiagnostics, fit_variogram
from .grid import assign_to_grid, grid_from_resolution, grid_to_targets
from .io import get_recurse
from .kriging import PredictionResult, krige
from .observations import SampleSet
from .validation import ValidationReport, cross_validate
from .variogram import VariogramModel


@dataclass
class PipelineResult:
    """Outputs of each stage of the pipeline"""

    empirical: EmpiricalVariogram
    model: VariogramModel
    diagnostics: FitDiagnostics
    predictions: list[PredictionResult] | None = None
    field: xr.Dataset | None = None
    report: ValidationReport | None = None


def run_pipeline(samples: SampleSet, config: dict) -> PipelineResult:
    """
    Estimate, fit, Krige and validate.

    Kriging onto a grid is performed only if the configuration contains a
    "grid" section, and cross-validation only if it contains a "validation"
    section.

    Parameters
    ----------
    samples : SampleSet
        The observations.
    config : dict
        The pipeline configuration, see the module documentation.

    Returns
    -------
    result : PipelineResult
    """
    bin_width = get_recurse(config, "variogram", "bin_width")
    if bin_width is None:
        raise KeyError("Configuration requires 'variogram: bin_width'")
    anisotropic: bool = get_recurse(
        config, "model", "anisotropic", default=False
    )
    directions = get_recurse(config, "variogram", "directions")
    if anisotropic and directions is None:
        directions = True
    time_scale = get_recurse(config, "variogram", "time_scale")

    logging.info(f"Running pipeline for {samples}")
    empirical = estimate_variogram(
        samples,
        bin_width=float(bin_width),
        cutoff=get_recurse(config, "variogram", "cutoff"),
        directions=directions,
        sector_half_width=get_recurse(
            config,
            "variogram",
            "sector_half_width",
            default=SECTOR_HALF_WIDTH,
        ),
        time_scale=time_scale,
    )

    model, diagnostics = fit_variogram(
        empirical,
        family=get_recurse(config, "model", "family", default="exponential"),
        initial_guess=get_recurse(config, "model", "initial_guess"),
        anisotropic=anisotropic,
        tol=get_recurse(config, "model", "tol", default=1e-8),
        max_iter=get_recurse(config, "model", "max_iter", default=1000),
    )
    result = PipelineResult(
        empirical=empirical, model=model, diagnostics=diagnostics
    )

    grid_config = config.get("grid")
    if grid_config is not None:
        if time_scale is not None:
            raise ValueError("Grid output is only defined for spatial Kriging")
        grid = grid_from_resolution(
            resolution=grid_config.get("resolution", 1.0),
            x_bounds=tuple(grid_config["x_bounds"]),
            y_bounds=tuple(grid_config["y_bounds"]),
        )
        targets = grid_to_targets(grid)
        logging.info(f"Kriging to {len(targets)} grid points")
        result.predictions = list(krige(samples, model, targets))
        n_failed = sum(not r.ok for r in result.predictions)
        if n_failed:
            logging.warning(f"{n_failed} grid points could not be predicted")
        result.field = assign_to_grid(result.predictions, grid)

    if "validation" in config:
        val_config = config["validation"] or {}
        result.report = cross_validate(
            samples,
            model,
            folds=val_config.get("folds", DEFAULT_FOLDS),
            seed=val_config.get("seed", DEFAULT_SEED),
            time_scale=time_scale,
        )

    return result
