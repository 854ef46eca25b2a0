#!/usr/bin/env python  # noqa: D100

import argparse
import logging
import os

from irradiance_kriging.io import (
    get_recurse,
    load_config,
    load_observations,
    write_model,
    write_predictions,
)
from irradiance_kriging.pipeline import run_pipeline
from irradiance_kriging.utils import init_logging

parser = argparse.ArgumentParser()
parser.add_argument(
    "-config",
    dest="config",
    required=False,
    default=os.path.join(os.path.dirname(__file__), "config_irradiance.yaml"),
    help="YAML file containing configuration settings",
)
parser.add_argument(
    "-observations",
    dest="observations",
    required=False,
    help="CSV file of observations, overrides the config file",
)
parser.add_argument(
    "-output",
    dest="output",
    required=False,
    help="Output directory, overrides the config file",
)
parser.add_argument(
    "-log_level",
    dest="log_level",
    required=False,
    default="info",
    help='Logging level - one of "debug", "info", "warn", "error"',
)


def _parse_args(parser) -> tuple[dict, str, str, str]:
    args = parser.parse_args()
    config: dict = load_config(args.config)
    obs_path: str | None = args.observations or get_recurse(
        config, "observations", "path"
    )
    if obs_path is None:
        raise ValueError("No observations file set in the config or arguments")
    output: str = args.output or get_recurse(
        config, "output", "path", default="."
    )
    return config, obs_path, output, args.log_level


def main():  # noqa: D103
    config, obs_path, output, log_level = _parse_args(parser)
    init_logging(get_recurse(config, "output", "log_file"), log_level)

    obs_config: dict = config.get("observations", {})
    samples = load_observations(
        obs_path,
        x_col=obs_config.get("x_col", "x"),
        y_col=obs_config.get("y_col", "y"),
        value_col=obs_config.get("value_col", "value"),
        time_col=obs_config.get("time_col"),
        average_duplicates=obs_config.get("average_duplicates", False),
    )
    logging.info(f"Loaded {samples} from {obs_path}")

    result = run_pipeline(samples, config)

    os.makedirs(output, exist_ok=True)
    result.empirical.to_frame().write_csv(
        os.path.join(output, "empirical_variogram.csv")
    )
    model_path = os.path.join(output, "variogram_model.yaml")
    write_model(result.model, model_path)
    logging.info(f"Wrote variogram model to {model_path}")

    if result.predictions is not None:
        pred_path = os.path.join(output, "predictions.csv")
        write_predictions(result.predictions, pred_path)
        logging.info(f"Wrote predictions to {pred_path}")
    if result.field is not None:
        field_path = os.path.join(output, "predictions.nc")
        result.field.to_netcdf(field_path)
        logging.info(f"Wrote gridded field to {field_path}")

    if result.report is not None:
        result.report.to_frame().write_csv(
            os.path.join(output, "cross_validation.csv")
        )
        for metric, value in result.report.summary().items():
            logging.info(f"Cross-validation {metric}: {value:.4g}")
    return None


if __name__ == "__main__":
    main()
