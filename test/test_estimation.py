import pytest  # noqa: F401
import numpy as np

from irradiance_kriging.constants import PRINCIPAL_DIRECTIONS
from irradiance_kriging.errors import DegenerateBinning, InsufficientData
from irradiance_kriging.estimation import estimate_variogram
from irradiance_kriging.observations import SampleSet


def _random_samples(n: int = 50, seed: int = 42) -> SampleSet:
    rng = np.random.default_rng(seed)
    x = rng.uniform(0, 100, n)
    y = rng.uniform(0, 100, n)
    values = 500 + 50 * np.sin(x / 15) + rng.normal(0, 10, n)
    return SampleSet.from_arrays(x, y, values)


def test_simple_variogram() -> None:  # noqa: D103
    samples = SampleSet.from_arrays([0.0, 1.0, 3.0], [0.0, 0.0, 0.0], [1, 3, 6])
    empirical = estimate_variogram(samples, bin_width=1.0, cutoff=3.0)

    # Bin [0, 1) is empty, the pair at exactly the cutoff joins the last bin
    assert len(empirical) == 2
    assert np.allclose(empirical.lags, [1.0, 2.5])
    assert np.allclose(empirical.gammas, [2.0, 8.5])
    assert np.all(empirical.pair_counts == [1, 2])
    assert not empirical.is_directional
    return None


def test_default_cutoff() -> None:  # noqa: D103
    samples = SampleSet.from_arrays(
        [0.0, 1.0, 2.0, 9.0], [0.0, 0.0, 0.0, 0.0], [1.0, 2.0, 3.0, 4.0]
    )
    empirical = estimate_variogram(samples, bin_width=1.0)

    assert np.isclose(empirical.cutoff, 3.0)
    assert np.all(empirical.lags <= 3.0)
    assert empirical.pair_counts.sum() == 3
    return None


def test_bins_valid() -> None:  # noqa: D103
    samples = _random_samples()
    empirical = estimate_variogram(samples, bin_width=5.0, cutoff=40.0)

    assert np.all(empirical.gammas >= 0)
    assert np.all(empirical.pair_counts >= 1)
    assert np.all(empirical.lags > 0)
    assert np.all(empirical.lags <= 40.0)

    coords = samples.coords()
    dist = np.linalg.norm(coords[:, None, :] - coords[None, :, :], axis=-1)
    n_pairs = np.sum(np.triu((dist > 0) & (dist <= 40.0), k=1))
    assert empirical.pair_counts.sum() == n_pairs
    return None


def test_order_invariant() -> None:  # noqa: D103
    samples = _random_samples()
    perm = np.random.default_rng(1).permutation(len(samples))
    shuffled = samples.subset(perm)

    a = estimate_variogram(samples, bin_width=5.0, cutoff=40.0)
    b = estimate_variogram(shuffled, bin_width=5.0, cutoff=40.0)

    assert np.all(a.pair_counts == b.pair_counts)
    assert np.allclose(a.lags, b.lags)
    assert np.allclose(a.gammas, b.gammas)
    return None


def test_rigid_motion_invariant() -> None:  # noqa: D103
    samples = _random_samples()
    coords = samples.coords()
    # Quarter turn then a shift
    moved = SampleSet.from_arrays(
        -coords[:, 1] + 250.0, coords[:, 0] - 125.0, samples.values
    )

    a = estimate_variogram(samples, bin_width=5.0, cutoff=40.0)
    b = estimate_variogram(moved, bin_width=5.0, cutoff=40.0)

    assert np.all(a.pair_counts == b.pair_counts)
    assert np.allclose(a.lags, b.lags)
    assert np.allclose(a.gammas, b.gammas)
    return None


def test_insufficient_data() -> None:  # noqa: D103
    samples = SampleSet.from_arrays([0.0], [0.0], [1.0])
    with pytest.raises(InsufficientData) as e:
        estimate_variogram(samples, bin_width=1.0)
    assert e.value.operation == "estimate_variogram"
    return None


@pytest.mark.parametrize(
    "bin_width, cutoff",
    [(0.0, 3.0), (-1.0, 3.0), (1.0, 0.5), (1.0, 0.0)],
)
def test_degenerate_binning(bin_width, cutoff) -> None:  # noqa: D103
    samples = SampleSet.from_arrays([0.0, 1.0, 3.0], [0.0, 0.0, 0.0], [1, 3, 6])
    with pytest.raises(DegenerateBinning):
        estimate_variogram(samples, bin_width=bin_width, cutoff=cutoff)
    return None


def test_directional_axis_pairs() -> None:  # noqa: D103
    samples = SampleSet.from_arrays([0.0, 1.0, 3.0], [0.0, 0.0, 0.0], [1, 3, 6])
    empirical = estimate_variogram(
        samples, bin_width=1.0, cutoff=3.0, directions=[0.0, 90.0]
    )

    assert empirical.is_directional
    assert empirical.directions == (0.0, 90.0)
    assert all(b.direction == 0.0 for b in empirical)
    assert len(empirical.for_direction(90.0)) == 0
    return None


def test_directional_covers_all_pairs() -> None:  # noqa: D103
    samples = _random_samples()
    omni = estimate_variogram(samples, bin_width=5.0, cutoff=40.0)
    directional = estimate_variogram(
        samples, bin_width=5.0, cutoff=40.0, directions=True
    )

    assert directional.directions == PRINCIPAL_DIRECTIONS
    assert set(directional.directions_array) <= set(PRINCIPAL_DIRECTIONS)
    # Four sectors of half-width 22.5 cover every bearing
    assert directional.pair_counts.sum() == omni.pair_counts.sum()
    return None


def test_narrow_sectors_exclude_pairs() -> None:  # noqa: D103
    samples = _random_samples()
    omni = estimate_variogram(samples, bin_width=5.0, cutoff=40.0)
    narrow = estimate_variogram(
        samples,
        bin_width=5.0,
        cutoff=40.0,
        directions=[0.0, 90.0],
        sector_half_width=10.0,
    )
    assert narrow.pair_counts.sum() < omni.pair_counts.sum()
    return None


def test_spatiotemporal() -> None:  # noqa: D103
    samples = SampleSet.from_records(
        [(0.0, 0.0, 0.0, 100.0), (0.0, 0.0, 1.0, 110.0), (0.0, 0.0, 2.0, 90.0)]
    )
    # Spatially co-located, no pairs carry lag information
    with pytest.raises(DegenerateBinning):
        estimate_variogram(samples, bin_width=1.0)

    empirical = estimate_variogram(
        samples, bin_width=1.0, cutoff=2.0, time_scale=1.0
    )
    assert empirical.time_scale == 1.0
    assert empirical.pair_counts.sum() == 3
    return None


def test_to_frame() -> None:  # noqa: D103
    samples = _random_samples()
    empirical = estimate_variogram(samples, bin_width=5.0, cutoff=40.0)
    df = empirical.to_frame()

    assert df.columns == ["direction", "lag_distance", "gamma", "pair_count"]
    assert df.height == len(empirical)
    assert df.get_column("direction").is_nan().all()
    return None


def test_tiny_bin_width() -> None:  # noqa: D103
    samples = SampleSet.from_arrays(
        [0.0, 1.0, 0.0, 3.0], [0.0, 0.0, 2.0, 3.0], [1.0, 4.0, 2.0, 7.0]
    )
    empirical = estimate_variogram(samples, bin_width=1e-10, cutoff=10.0)

    # Every pair is separated by a distinct distance, so has its own bin
    assert len(empirical) == 6
    assert np.all(empirical.pair_counts == 1)
    assert np.all(np.diff(empirical.lags) > 0)
    assert np.isclose(empirical.gammas.sum(), 0.5 * (9 + 1 + 36 + 4 + 9 + 25))
    return None
