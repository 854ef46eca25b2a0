"""
Functions for loading configuration and observations, and writing results.
"""

import os
from collections.abc import Iterable
from typing import Any
import polars as pl
import yaml

from .kriging import PredictionResult, results_to_frame
from .observations import SampleSet
from .variogram import VariogramModel


def get_recurse(config: dict, *keys, default: Any = None) -> Any:
    """
    Get a value from a nested dictionary, following a sequence of keys.

    Returns `default` if any key along the path is missing.

    Examples
    --------
    >>> get_recurse({"model": {"family": "exponential"}}, "model", "family")
    'exponential'
    """
    value: Any = config
    for key in keys:
        if not isinstance(value, dict) or key not in value:
            return default
        value = value[key]
    return value


def load_config(path: str) -> dict:
    """
    Load a YAML configuration file.

    Parameters
    ----------
    path : str
        Path to the YAML file.

    Returns
    -------
    config : dict
        The configuration. An empty file gives an empty dictionary.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Config file: {path} not found")
    with open(path, "r") as io:
        config = yaml.safe_load(io)
    return config or {}


def load_observations(
    path: str,
    x_col: str = "x",
    y_col: str = "y",
    value_col: str = "value",
    time_col: str | None = None,
    average_duplicates: bool = False,
) -> SampleSet:
    """
    Load observations from a CSV file.

    Parameters
    ----------
    path : str
        Path to the CSV file.
    x_col, y_col : str
        Names of the columns containing the coordinates.
    value_col : str
        Name of the column containing the measured values.
    time_col : str | None
        Optional name of the column containing the observation times.
    average_duplicates : bool
        Average observations at identical locations, see
        `SampleSet.from_frame`.

    Returns
    -------
    samples : SampleSet
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Observations file: {path} not found")
    df = pl.read_csv(path)
    return SampleSet.from_frame(
        df,
        x_col=x_col,
        y_col=y_col,
        value_col=value_col,
        time_col=time_col,
        average_duplicates=average_duplicates,
    )


def write_predictions(
    results: Iterable[PredictionResult],
    path: str,
) -> None:
    """Write Kriging results to a CSV file"""
    results_to_frame(results).write_csv(path)
    return None


def write_model(model: VariogramModel, path: str) -> None:
    """Write a variogram model to a YAML file"""
    with open(path, "w") as io:
        yaml.safe_dump(model.to_dict(), io, sort_keys=False)
    return None


def load_model(path: str) -> VariogramModel:
    """Load a variogram model from a YAML file written by `write_model`"""
    return VariogramModel.from_dict(load_config(path))
