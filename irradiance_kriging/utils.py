r"""Utility functions for `irradiance_kriging`"""

from collections.abc import Iterable, Iterator
import inspect
from itertools import islice
import logging
from typing import TypeVar
from warnings import warn
import numpy as np
import polars as pl

from .errors import NonPositiveVarianceClamped
from .types import LogLevel

T = TypeVar("T")


class ColumnNotFoundError(Exception):
    """Error class for Column Not Being Found"""

    pass


def check_cols(
    df: pl.DataFrame,
    cols: list[str],
) -> None:
    """Raise a ColumnNotFoundError if any of `cols` is not in the DataFrame"""
    caller = inspect.stack()[1].function
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ColumnNotFoundError(
            f"{caller}: observations are missing column(s) "
            + ", ".join(missing)
        )
    return None


def clamp_negative_variance(
    variance: float,
    atol: float = 1e-10,
) -> tuple[float, bool]:
    """
    Floor a Kriging variance at 0.

    Negative values with absolute value below `atol` are rounding noise and are
    set to 0 silently. Larger negative values indicate an invalid variogram
    model, these are also set to 0 but raise a `NonPositiveVarianceClamped`
    warning.

    Parameters
    ----------
    variance : float
        The computed Kriging variance.
    atol : float
        Tolerance for silently treating negative values as 0.

    Returns
    -------
    variance : float
        The input variance, floored at 0.
    clamped : bool
        Whether the variance was clamped because it was meaningfully negative.
    """
    if variance >= 0.0:
        return variance, False
    if np.isclose(variance, 0.0, atol=atol):
        return 0.0, False
    warn(
        f"Negative Kriging variance {variance:.6g} detected. Setting to 0.",
        NonPositiveVarianceClamped,
        stacklevel=3,
    )
    return 0.0, True


def _get_logging_level(level: LogLevel | str) -> int:
    levels = logging.getLevelNamesMapping()
    name = level.upper()
    if name not in levels or name == "NOTSET":
        raise ValueError(f"Unknown logging level: {level}")
    return levels[name]


def init_logging(
    file: str | None = None,
    level: LogLevel | str = "info",
) -> None:
    """
    Initialise the logger

    Library functions log through the root logger, and diagnostic warnings
    (for example `FitDidNotImprove`) are captured into the log.

    Parameters
    ----------
    file : str | None
        File to append log messages to. If set to None (default) then print
        log messages to STDerr
    level : str
        Level of logging, one of: "debug", "info", "warn", "error", "critical".
    """
    logging.basicConfig(
        filename=file,
        filemode="a",
        encoding="utf-8",
        format="%(asctime)s %(levelname)s [%(module)s] %(message)s",
        level=_get_logging_level(level),
        force=True,
    )
    logging.captureWarnings(True)
    return None


def chunked(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """
    Split an iterable into consecutive lists of at most `size` items.

    Examples
    --------
    >>> list(chunked([(0, 0), (1, 0), (2, 0)], 2))
    [[(0, 0), (1, 0)], [(2, 0)]]
    """
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    iterator = iter(items)
    while chunk := list(islice(iterator, size)):
        yield chunk
