"""
Empirical Variogram
-------------------

Estimation of binned semivariance from scattered observations.

For every unordered pair of observations separated by a positive distance no
greater than the cutoff, half the squared difference of their values is
accumulated into a distance bin of fixed width (optionally split by direction
sector). The semivariance of a bin is the mean of its contributions.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, replace
import logging
import numpy as np
import polars as pl

from .constants import CUTOFF_FRACTION, PRINCIPAL_DIRECTIONS, SECTOR_HALF_WIDTH
from .distances import angular_difference, bearing, pair_indices
from .errors import DegenerateBinning, InsufficientData
from .observations import SampleSet


@dataclass(frozen=True)
class SemivarianceBin:
    """
    A single bin of the empirical variogram.

    Parameters
    ----------
    lag_distance : float
        Mean separation distance of the pairs in the bin.
    gamma : float
        Half the mean squared difference of values of the pairs in the bin.
    pair_count : int
        Number of pairs in the bin, always at least 1.
    direction : float | None
        Centre of the direction sector of the bin (degrees), for directional
        variograms.
    """

    lag_distance: float
    gamma: float
    pair_count: int
    direction: float | None = None


@dataclass(frozen=True)
class EmpiricalVariogram:
    """
    Binned semivariance as a function of lag distance (and direction).

    Bins are ordered by direction and then by lag distance. Bins containing no
    pairs are not included.

    Parameters
    ----------
    bins : tuple[SemivarianceBin, ...]
        The non-empty bins.
    bin_width : float
        Width of the distance bins.
    cutoff : float
        Maximum pair separation included.
    directions : tuple[float, ...] | None
        Direction sector centres (degrees), or None for an omnidirectional
        variogram.
    sector_half_width : float
        Angular half-width of the direction sectors (degrees).
    time_scale : float | None
        Scaling applied to observation times if distances were spatiotemporal.
    """

    bins: tuple[SemivarianceBin, ...]
    bin_width: float
    cutoff: float
    directions: tuple[float, ...] | None = None
    sector_half_width: float = SECTOR_HALF_WIDTH
    time_scale: float | None = None

    @property
    def is_directional(self) -> bool:
        """Whether bins are split by direction"""
        return self.directions is not None

    @property
    def lags(self) -> np.ndarray:
        """Lag distances of the bins"""
        return np.array([b.lag_distance for b in self.bins], dtype=float)

    @property
    def gammas(self) -> np.ndarray:
        """Semivariance of the bins"""
        return np.array([b.gamma for b in self.bins], dtype=float)

    @property
    def pair_counts(self) -> np.ndarray:
        """Number of pairs in each bin"""
        return np.array([b.pair_count for b in self.bins], dtype=int)

    @property
    def directions_array(self) -> np.ndarray:
        """Direction of each bin, NaN for omnidirectional bins"""
        return np.array(
            [np.nan if b.direction is None else b.direction for b in self.bins],
            dtype=float,
        )

    def for_direction(self, direction: float) -> "EmpiricalVariogram":
        """The bins of a single direction sector"""
        if self.directions is None:
            raise ValueError("EmpiricalVariogram is not directional")
        bins = tuple(b for b in self.bins if b.direction == direction)
        return replace(self, bins=bins, directions=(direction,))

    def to_frame(self) -> pl.DataFrame:
        """The bins as a polars.DataFrame"""
        return pl.DataFrame(
            {
                "direction": self.directions_array,
                "lag_distance": self.lags,
                "gamma": self.gammas,
                "pair_count": self.pair_counts,
            },
            schema={
                "direction": pl.Float64,
                "lag_distance": pl.Float64,
                "gamma": pl.Float64,
                "pair_count": pl.Int64,
            },
        )

    def __len__(self) -> int:
        return len(self.bins)

    def __iter__(self) -> Iterator[SemivarianceBin]:
        return iter(self.bins)


def default_cutoff(max_distance: float) -> float:
    """Default cutoff: one third of the maximum pairwise distance"""
    return CUTOFF_FRACTION * max_distance


def _resolve_directions(
    directions: Sequence[float] | bool | None,
) -> tuple[float, ...] | None:
    if directions is None or directions is False:
        return None
    if directions is True:
        return PRINCIPAL_DIRECTIONS
    resolved = tuple(float(np.mod(d, 180.0)) for d in directions)
    if not resolved:
        raise ValueError("At least one direction must be requested")
    if len(set(resolved)) != len(resolved):
        raise ValueError("Requested directions must be distinct")
    return resolved


def estimate_variogram(
    samples: SampleSet,
    bin_width: float,
    cutoff: float | None = None,
    directions: Sequence[float] | bool | None = None,
    sector_half_width: float = SECTOR_HALF_WIDTH,
    time_scale: float | None = None,
) -> EmpiricalVariogram:
    """
    Compute the empirical variogram of a SampleSet.

    Parameters
    ----------
    samples : SampleSet
        The observations.
    bin_width : float
        Width of the lag distance bins. Bin `k` holds pairs with separation in
        `[k * bin_width, (k + 1) * bin_width)`, the final bin also includes
        pairs separated by exactly the cutoff.
    cutoff : float | None
        Maximum separation of pairs to include. Defaults to one third of the
        maximum pairwise distance.
    directions : Sequence[float] | bool | None
        Direction sector centres in degrees counter-clockwise from the +x axis.
        Each pair is assigned to the sector nearest its bearing, pairs further
        than `sector_half_width` from every sector are excluded. Set to True
        to use the four principal directions 0, 45, 90, 135. If not set, an
        omnidirectional variogram is computed.
    sector_half_width : float
        Angular half-width of each direction sector (degrees).
    time_scale : float | None
        If set, time-tagged observations are separated by a spatiotemporal
        distance, with the time difference multiplied by this factor. Otherwise
        only the spatial coordinates are used. Bearings are always computed
        from the spatial components.

    Returns
    -------
    empirical : EmpiricalVariogram
        The non-empty bins.

    Raises
    ------
    InsufficientData
        If there are fewer than 2 observations.
    DegenerateBinning
        If the bin width or cutoff are not positive, or no pairs fall within
        the bins.
    """
    n = len(samples)
    if n < 2:
        raise InsufficientData(
            f"At least 2 observations are required, got {n}",
            operation="estimate_variogram",
            parameter="samples",
        )
    if not bin_width > 0:
        raise DegenerateBinning(
            f"bin_width must be positive, got {bin_width}",
            operation="estimate_variogram",
            parameter="bin_width",
        )
    dirs = _resolve_directions(directions)

    coords = samples.coords(time_scale)
    values = samples.values

    i, j = pair_indices(n)
    delta = coords[j] - coords[i]
    dist = np.linalg.norm(delta, axis=1)
    half_sq_diff = 0.5 * (values[j] - values[i]) ** 2

    if cutoff is None:
        cutoff = default_cutoff(float(dist.max()))
    if not cutoff > 0:
        raise DegenerateBinning(
            f"cutoff must be positive, got {cutoff}",
            operation="estimate_variogram",
            parameter="cutoff",
        )

    # Co-located pairs carry no lag information
    keep = (dist > 0) & (dist <= cutoff)

    sector = np.zeros(dist.shape, dtype=int)
    if dirs is not None:
        pair_bearing = bearing(delta[:, :2])
        diffs = angular_difference(
            pair_bearing[:, None], np.asarray(dirs)[None, :]
        )
        sector = np.argmin(diffs, axis=1)
        keep &= diffs[np.arange(len(sector)), sector] <= sector_half_width

    if not np.any(keep):
        raise DegenerateBinning(
            f"No pairs within cutoff {cutoff} for bin width {bin_width}",
            operation="estimate_variogram",
            parameter="cutoff",
        )

    dist = dist[keep]
    half_sq_diff = half_sq_diff[keep]
    sector = sector[keep]
    n_bins = max(float(np.ceil(cutoff / bin_width)), 1.0)
    bin_idx = np.minimum(dist // bin_width, n_bins - 1)

    # Aggregate over the occupied (sector, bin) cells only
    cells, cell = np.unique(
        np.column_stack([sector, bin_idx]), axis=0, return_inverse=True
    )
    cell = cell.reshape(-1)
    counts = np.bincount(cell)
    dist_sum = np.bincount(cell, weights=dist)
    gamma_sum = np.bincount(cell, weights=half_sq_diff)

    bins: list[SemivarianceBin] = []
    for c, (s, _) in enumerate(cells):
        bins.append(
            SemivarianceBin(
                lag_distance=float(dist_sum[c] / counts[c]),
                gamma=float(gamma_sum[c] / counts[c]),
                pair_count=int(counts[c]),
                direction=None if dirs is None else dirs[int(s)],
            )
        )

    logging.info(
        f"Empirical variogram: {len(bins)} bins from {len(dist)} "
        + f"pairs of {n} observations (cutoff = {cutoff:.4g})"
    )
    return EmpiricalVariogram(
        bins=tuple(bins),
        bin_width=float(bin_width),
        cutoff=float(cutoff),
        directions=dirs,
        sector_half_width=float(sector_half_width),
        time_scale=time_scale,
    )
