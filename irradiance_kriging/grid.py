"""
Grid
----

Functions for creating regular grids of target locations and mapping Kriging
results back onto the grid.
"""

from collections.abc import Iterable
import numpy as np
import xarray as xr

from .kriging import PredictionResult


def grid_from_resolution(
    resolution: float | tuple[float, float],
    x_bounds: tuple[float, float],
    y_bounds: tuple[float, float],
) -> xr.DataArray:
    """
    Regular grid of target locations covering a bounding box.

    Coordinates start at the lower bound of each axis and step by the
    resolution, the upper bound is excluded. The grid has dimensions ("y", "x"),
    so each row runs along the x axis.

    Parameters
    ----------
    resolution : float | tuple[float, float]
        Grid spacing. A single value is used for both axes, otherwise the
        spacing is given as (x_resolution, y_resolution).
    x_bounds, y_bounds : tuple[float, float]
        Lower and upper bounds of each axis.

    Returns
    -------
    grid : xarray.DataArray
        An empty (zero) grid with "x" and "y" coordinates.
    """
    if np.ndim(resolution) == 0:
        dx = dy = float(resolution)  # type: ignore
    else:
        dx, dy = resolution  # type: ignore
    if not (dx > 0 and dy > 0):
        raise ValueError(f"Grid resolution must be positive, got {resolution}")

    x = np.arange(x_bounds[0], x_bounds[1], dx)
    y = np.arange(y_bounds[0], y_bounds[1], dy)
    if x.size == 0 or y.size == 0:
        raise ValueError("Grid bounds do not contain any points")
    return xr.DataArray(
        np.zeros((y.size, x.size)),
        coords={"y": y, "x": x},
        dims=("y", "x"),
        name="grid",
    )


def grid_to_targets(
    grid: xr.DataArray,
    x_coord: str = "x",
    y_coord: str = "y",
) -> list[tuple[float, float]]:
    """
    List the (x, y) locations of every point in a 2-d grid.

    The locations are ordered by the 1d index of the grid in a row-major ("C")
    format, matching `assign_to_grid`.

    Parameters
    ----------
    grid : xarray.DataArray
        A 2-d grid with x and y coordinates.
    x_coord, y_coord : str
        Names of the x and y coordinates of the grid.

    Returns
    -------
    targets : list[tuple[float, float]]
    """
    dims = list(grid.dims)
    if len(dims) != 2:
        raise ValueError("Input grid must have 2 dimensions")
    for coord in (x_coord, y_coord):
        if coord not in dims:
            raise KeyError(f"Cannot find coordinate {coord} in the grid.")

    x_pos, y_pos = dims.index(x_coord), dims.index(y_coord)
    index = grid.coords.to_index()
    return [(float(pt[x_pos]), float(pt[y_pos])) for pt in index]


def assign_to_grid(
    results: Iterable[PredictionResult],
    grid: xr.DataArray,
) -> xr.Dataset:
    """
    Assign Kriging results, computed for the output of `grid_to_targets`, to
    the grid.

    Parameters
    ----------
    results : Iterable[PredictionResult]
        One result per grid point, in row-major order of the grid.
    grid : xarray.DataArray
        The grid used to define the output grid.

    Returns
    -------
    out_grid : xarray.Dataset
        Containing "predicted_value" and "prediction_variance" variables on the
        grid. Points that could not be predicted are NaN.
    """
    results = list(results)
    if len(results) != grid.size:
        raise ValueError(
            f"Number of results ({len(results)}) does not match the number "
            + f"of grid points ({grid.size})"
        )
    values = np.array([r.predicted_value for r in results], dtype=float)
    variances = np.array([r.prediction_variance for r in results], dtype=float)
    return xr.Dataset(
        {
            "predicted_value": (
                grid.dims,
                values.reshape(grid.shape, order="C"),
            ),
            "prediction_variance": (
                grid.dims,
                variances.reshape(grid.shape, order="C"),
            ),
        },
        coords=grid.coords,
    )
