"""Types and Literals used by irradiance_kriging functions and methods."""

from typing import Literal

VariogramFamily = Literal["spherical", "exponential", "gaussian"]

LogLevel = Literal["debug", "info", "warn", "error", "critical"]
