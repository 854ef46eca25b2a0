import pytest  # noqa: F401
import numpy as np

from irradiance_kriging.errors import InsufficientFoldData
from irradiance_kriging.kriging import krige
from irradiance_kriging.observations import SampleSet
from irradiance_kriging.validation import assign_folds, cross_validate
from irradiance_kriging.variogram import VariogramModel

MODEL = VariogramModel("exponential", 0.1, 2.0, 3.0)


def _random_samples(n: int, seed: int = 5) -> SampleSet:
    rng = np.random.default_rng(seed)
    x = rng.uniform(0, 10, n)
    y = rng.uniform(0, 10, n)
    values = 20 + np.sin(x / 2) + 0.5 * y + rng.normal(0, 0.2, n)
    return SampleSet.from_arrays(x, y, values)


def test_leave_one_out() -> None:  # noqa: D103
    samples = _random_samples(10)
    report = cross_validate(samples, MODEL, folds=10)

    assert report.n_folds == 10
    assert report.residuals.shape == (10,)
    assert np.all(report.folds == np.arange(10))
    assert np.all(np.isfinite(report.predicted))
    return None


def test_too_many_folds_is_loo() -> None:  # noqa: D103
    samples = _random_samples(6)
    report = cross_validate(samples, MODEL, folds=50)
    loo = cross_validate(samples, MODEL, folds=6)

    assert report.n_folds == 6
    assert np.allclose(report.predicted, loo.predicted)
    return None


def test_loo_matches_kriging() -> None:  # noqa: D103
    samples = _random_samples(8)
    report = cross_validate(samples, MODEL, folds=8)

    for i in [0, 3, 7]:
        (result,) = krige(samples.drop([i]), MODEL, [samples[i].location])
        assert np.isclose(report.predicted[i], result.predicted_value)
    return None


def test_metrics() -> None:  # noqa: D103
    samples = _random_samples(40)
    report = cross_validate(samples, MODEL, folds=5, seed=3)
    residuals = report.observed - report.predicted

    assert report.n_folds == 5
    assert np.isclose(report.rmse, np.sqrt(np.mean(residuals**2)))
    assert np.isclose(
        report.nrmse_percent, 100 * report.rmse / np.mean(report.observed)
    )
    persistence = np.sqrt(
        np.mean((report.observed - np.mean(report.observed)) ** 2)
    )
    assert np.isclose(report.rmse_persistence, persistence)
    assert np.isclose(report.skill_ratio, 1 - report.rmse / persistence)
    assert report.skill_ratio <= 1.0
    assert np.isclose(report.mean_error, np.mean(residuals))
    assert np.isclose(report.mae, np.mean(np.abs(residuals)))
    assert set(report.summary()) >= {"rmse", "nrmse_percent", "skill_ratio"}
    assert report.to_frame().height == 40
    return None


def test_constant_values() -> None:  # noqa: D103
    rng = np.random.default_rng(9)
    samples = SampleSet.from_arrays(
        rng.uniform(0, 10, 12), rng.uniform(0, 10, 12), np.full(12, 650.0)
    )
    report = cross_validate(samples, MODEL, folds=4)

    assert report.rmse_persistence == 0.0
    assert report.skill_ratio == 0.0
    assert np.isclose(report.rmse, 0.0)
    return None


def test_zero_mean_nrmse() -> None:  # noqa: D103
    samples = SampleSet.from_arrays(
        [0.0, 1.0, 2.0, 3.0, 4.0, 5.0],
        [0.0, 2.0, 1.0, 3.0, 0.5, 2.5],
        [-1.0, 1.0, -2.0, 2.0, -3.0, 3.0],
    )
    with pytest.warns(UserWarning):
        report = cross_validate(samples, MODEL, folds=6)
    assert np.isnan(report.nrmse_percent)
    assert np.isfinite(report.rmse)
    return None


def test_deterministic_folds() -> None:  # noqa: D103
    a = assign_folds(23, folds=5, seed=1)
    b = assign_folds(23, folds=5, seed=1)

    assert len(a) == 5
    assert all(np.array_equal(fa, fb) for fa, fb in zip(a, b))
    assert np.array_equal(np.sort(np.concatenate(a)), np.arange(23))
    assert max(len(f) for f in a) - min(len(f) for f in a) <= 1

    samples = _random_samples(23)
    r1 = cross_validate(samples, MODEL, folds=5, seed=1)
    r2 = cross_validate(samples, MODEL, folds=5, seed=1)
    assert np.array_equal(r1.predicted, r2.predicted)
    return None


def test_insufficient_fold_data() -> None:  # noqa: D103
    with pytest.raises(InsufficientFoldData):
        cross_validate(_random_samples(2), MODEL)

    # Fold of 2 leaves a single observation
    with pytest.raises(InsufficientFoldData):
        cross_validate(_random_samples(3), MODEL, folds=2)

    with pytest.raises(InsufficientFoldData):
        assign_folds(10, folds=1)
    return None
