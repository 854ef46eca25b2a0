import pytest  # noqa: F401
import numpy as np
import polars as pl

from irradiance_kriging.errors import DuplicateLocationError, SampleSetError
from irradiance_kriging.observations import Observation, SampleSet
from irradiance_kriging.utils import ColumnNotFoundError


def test_sampleset_from_arrays() -> None:  # noqa: D103
    samples = SampleSet.from_arrays(
        [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [10.0, 12.0, 11.0]
    )

    assert len(samples) == 3
    assert not samples.has_time
    assert np.allclose(samples.values, [10.0, 12.0, 11.0])
    assert samples.coords().shape == (3, 2)
    assert samples[1] == Observation(1.0, 0.0, 12.0)
    assert [o.location for o in samples] == [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)]
    return None


def test_duplicate_locations() -> None:  # noqa: D103
    with pytest.raises(DuplicateLocationError):
        SampleSet.from_arrays([0.0, 1.0, 0.0], [0.0, 0.0, 0.0], [1.0, 2.0, 3.0])

    # Duplicate locations are still validation failures
    with pytest.raises(SampleSetError):
        SampleSet.from_records([(5.0, 5.0, 100.0), (5.0, 5.0, 120.0)])
    return None


def test_duplicate_locations_distinct_times() -> None:  # noqa: D103
    samples = SampleSet.from_records(
        [(5.0, 5.0, 0.0, 100.0), (5.0, 5.0, 1.0, 120.0)]
    )
    assert samples.has_time
    assert len(samples) == 2
    return None


@pytest.mark.parametrize(
    "x, value",
    [
        ([0.0, np.nan, 2.0], [1.0, 2.0, 3.0]),
        ([0.0, 1.0, 2.0], [1.0, np.inf, 3.0]),
    ],
)
def test_non_finite(x, value) -> None:  # noqa: D103
    with pytest.raises(SampleSetError):
        SampleSet.from_arrays(x, [0.0, 0.0, 0.0], value)
    return None


def test_missing_column() -> None:  # noqa: D103
    with pytest.raises(ColumnNotFoundError):
        SampleSet(pl.DataFrame({"x": [0.0], "y": [0.0]}))
    return None


def test_from_frame_average_duplicates() -> None:  # noqa: D103
    df = pl.DataFrame(
        {
            "lon": [0.0, 1.0, 0.0, 2.0],
            "lat": [0.0, 1.0, 0.0, 2.0],
            "ghi": [100.0, 200.0, 300.0, 400.0],
            "station": ["a", "b", "a", "c"],
        }
    )
    with pytest.raises(DuplicateLocationError):
        SampleSet.from_frame(df, x_col="lon", y_col="lat", value_col="ghi")

    samples = SampleSet.from_frame(
        df,
        x_col="lon",
        y_col="lat",
        value_col="ghi",
        average_duplicates=True,
    )
    assert len(samples) == 3
    assert samples.frame.columns == ["x", "y", "value"]
    assert np.allclose(samples.values, [200.0, 200.0, 400.0])
    return None


def test_coords_time_scale() -> None:  # noqa: D103
    samples = SampleSet.from_arrays(
        [0.0, 1.0], [0.0, 1.0], [5.0, 6.0], t=[0.0, 2.0]
    )
    assert samples.frame.columns == ["x", "y", "t", "value"]
    assert samples.coords().shape == (2, 2)

    coords = samples.coords(time_scale=10.0)
    assert coords.shape == (2, 3)
    assert np.allclose(coords[:, 2], [0.0, 20.0])

    spatial = SampleSet.from_arrays([0.0, 1.0], [0.0, 1.0], [5.0, 6.0])
    with pytest.raises(ValueError):
        spatial.coords(time_scale=1.0)
    return None


def test_from_records_mixed_time() -> None:  # noqa: D103
    with pytest.raises(SampleSetError):
        SampleSet.from_records([(0.0, 0.0, 1.0), (1.0, 1.0, 0.0, 2.0)])
    with pytest.raises(SampleSetError):
        SampleSet.from_records([(0.0, 0.0)])
    return None


def test_subset_and_drop() -> None:  # noqa: D103
    samples = SampleSet.from_arrays(
        [0.0, 1.0, 2.0, 3.0], [0.0, 0.0, 0.0, 0.0], [1.0, 2.0, 3.0, 4.0]
    )
    subset = samples.subset([3, 1])
    assert np.allclose(subset.values, [4.0, 2.0])

    dropped = samples.drop(np.array([0, 2]))
    assert np.allclose(dropped.values, [2.0, 4.0])
    assert len(samples) == 4
    return None


def test_select_time() -> None:  # noqa: D103
    samples = SampleSet.from_records(
        [
            Observation(0.0, 0.0, 1.0, t=0.0),
            Observation(1.0, 0.0, 2.0, t=0.0),
            Observation(0.0, 0.0, 3.0, t=1.0),
        ]
    )
    at_zero = samples.select_time(0.0)
    assert len(at_zero) == 2
    assert np.allclose(at_zero.values, [1.0, 2.0])
    return None
