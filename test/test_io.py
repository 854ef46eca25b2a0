import pytest  # noqa: F401
import numpy as np
import polars as pl

from irradiance_kriging.io import (
    get_recurse,
    load_config,
    load_model,
    load_observations,
    write_model,
    write_predictions,
)
from irradiance_kriging.kriging import krige
from irradiance_kriging.observations import SampleSet
from irradiance_kriging.variogram import Anisotropy, VariogramModel


def test_nested_dict() -> None:
    test_dict = {
        "nested": {"a": 4, "nested_2": {"a": 6, "b": 3}},
        "a": 2,
        "b": 9,
    }

    assert get_recurse(test_dict, "c") is None
    assert get_recurse(test_dict, "a") == 2
    assert get_recurse(test_dict, "nested", "a") == 4
    assert get_recurse(test_dict, "nested", "b") is None
    assert get_recurse(test_dict, "nested", "b", default="DEFAULT") == "DEFAULT"
    assert get_recurse(test_dict, "nested", "nested_2", "a") == 6
    assert get_recurse(test_dict, "a", "b") is None
    return None


def test_load_config(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("variogram:\n  bin_width: 5.0\n  cutoff: null\n")

    config = load_config(str(path))
    assert get_recurse(config, "variogram", "bin_width") == 5.0
    assert get_recurse(config, "variogram", "cutoff", default=3.0) is None

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    assert load_config(str(empty)) == {}

    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))
    return None


def test_model_round_trip(tmp_path) -> None:
    path = str(tmp_path / "model.yaml")
    model = VariogramModel(
        "gaussian", 12.5, 3400.0, 18.0, anisotropy=Anisotropy(30.0, 0.6)
    )
    write_model(model, path)

    assert load_model(path) == model
    return None


def test_load_observations(tmp_path) -> None:
    path = str(tmp_path / "obs.csv")
    pl.DataFrame(
        {
            "station": ["a", "b", "c", "a"],
            "easting": [0.0, 1.0, 0.0, 0.0],
            "northing": [0.0, 0.0, 1.0, 0.0],
            "ghi": [400.0, 410.0, 405.0, 420.0],
        }
    ).write_csv(path)

    samples = load_observations(
        path,
        x_col="easting",
        y_col="northing",
        value_col="ghi",
        average_duplicates=True,
    )
    assert isinstance(samples, SampleSet)
    assert len(samples) == 3
    assert np.isclose(samples[0].value, 410.0)

    with pytest.raises(FileNotFoundError):
        load_observations(str(tmp_path / "missing.csv"))
    return None


def test_write_predictions(tmp_path) -> None:
    path = str(tmp_path / "predictions.csv")
    samples = SampleSet.from_arrays(
        [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [10.0, 12.0, 11.0]
    )
    model = VariogramModel("exponential", 0.0, 2.0, 1.0)
    write_predictions(krige(samples, model, [(0.0, 0.0), (0.3, 0.3)]), path)

    df = pl.read_csv(path)
    assert df.height == 2
    assert df.get_column("predicted_value")[0] == 10.0
    assert df.get_column("prediction_variance")[0] == 0.0
    return None
