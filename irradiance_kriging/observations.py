"""
Observations
------------

Point observations of irradiance, and the `SampleSet` container used as the
input to variogram estimation, Kriging and cross-validation.

A `SampleSet` stores its observations in a `polars.DataFrame` with columns
"x", "y", "value" and, for time-tagged observations, "t". The DataFrame is
validated on construction: all values must be finite and no two observations
can share an identical location.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
import logging
import numpy as np
import polars as pl

from .errors import DuplicateLocationError, SampleSetError
from .utils import check_cols


@dataclass(frozen=True)
class Observation:
    """
    A single measurement.

    Parameters
    ----------
    x : float
        Easting of the observation.
    y : float
        Northing of the observation.
    value : float
        The measured value, for example global horizontal irradiance.
    t : float | None
        Optional time of the observation.
    """

    x: float
    y: float
    value: float
    t: float | None = None

    @property
    def location(self) -> tuple[float, ...]:
        """Location of the observation, (x, y) or (x, y, t)"""
        if self.t is None:
            return (self.x, self.y)
        return (self.x, self.y, self.t)


class SampleSet:
    """
    Ordered, immutable collection of Observations.

    The ordering of the observations does not affect any of the computations,
    but is kept stable so that cross-validation folds are reproducible.

    Parameters
    ----------
    frame : polars.DataFrame
        Observations, required columns are "x", "y" and "value". An optional
        "t" column contains observation times. Any other columns are dropped.

    Raises
    ------
    SampleSetError
        If any coordinate or value is missing or not finite.
    DuplicateLocationError
        If two or more observations share an identical location.
    """

    def __init__(self, frame: pl.DataFrame) -> None:
        check_cols(frame, ["x", "y", "value"])
        cols = ["x", "y", "value"]
        if "t" in frame.columns:
            cols.insert(2, "t")
        frame = frame.select([pl.col(c).cast(pl.Float64) for c in cols])
        _check_finite(frame)
        _check_unique_locations(frame)
        self._frame = frame
        return None

    @classmethod
    def from_arrays(
        cls,
        x: Iterable[float],
        y: Iterable[float],
        values: Iterable[float],
        t: Iterable[float] | None = None,
    ) -> "SampleSet":
        """Create a SampleSet from coordinate and value vectors"""
        data = {"x": list(x), "y": list(y)}
        if t is not None:
            data["t"] = list(t)
        data["value"] = list(values)
        return cls(pl.DataFrame(data))

    @classmethod
    def from_records(
        cls,
        records: Iterable[Observation | Sequence[float]],
    ) -> "SampleSet":
        """
        Create a SampleSet from Observations or tuples.

        Tuples are interpreted as (x, y, value) or (x, y, t, value).
        """
        obs: list[Observation] = []
        for record in records:
            if isinstance(record, Observation):
                obs.append(record)
                continue
            match len(record):
                case 3:
                    obs.append(Observation(record[0], record[1], record[2]))
                case 4:
                    obs.append(
                        Observation(record[0], record[1], record[3], record[2])
                    )
                case _:
                    raise SampleSetError(
                        "Records must be (x, y, value) or (x, y, t, value)"
                    )
        has_time = [o.t is not None for o in obs]
        if any(has_time) and not all(has_time):
            raise SampleSetError("Either all or no records must have a time")
        return cls.from_arrays(
            [o.x for o in obs],
            [o.y for o in obs],
            [o.value for o in obs],
            [o.t for o in obs] if obs and all(has_time) else None,
        )

    @classmethod
    def from_frame(
        cls,
        df: pl.DataFrame,
        x_col: str = "x",
        y_col: str = "y",
        value_col: str = "value",
        time_col: str | None = None,
        average_duplicates: bool = False,
    ) -> "SampleSet":
        """
        Create a SampleSet from a DataFrame with arbitrary column names.

        Parameters
        ----------
        df : polars.DataFrame
            The observations.
        x_col, y_col : str
            Names of the columns containing the coordinates.
        value_col : str
            Name of the column containing the measured values.
        time_col : str | None
            Optional name of the column containing observation times.
        average_duplicates : bool
            Merge observations at identical locations into a single
            observation holding their mean value. If not set, duplicate
            locations raise a `DuplicateLocationError`.
        """
        cols = [x_col, y_col, value_col]
        if time_col is not None:
            cols.append(time_col)
        check_cols(df, cols)

        renames = {x_col: "x", y_col: "y", value_col: "value"}
        if time_col is not None:
            renames[time_col] = "t"
        frame = df.select(list(renames)).rename(renames)

        if average_duplicates:
            loc_cols = ["x", "y"] if time_col is None else ["x", "y", "t"]
            n_before = frame.height
            frame = frame.group_by(loc_cols, maintain_order=True).agg(
                pl.col("value").mean()
            )
            if frame.height < n_before:
                logging.info(
                    f"Averaged {n_before - frame.height} duplicate "
                    + "observations into shared locations"
                )
        return cls(frame)

    @property
    def frame(self) -> pl.DataFrame:
        """The observations as a polars.DataFrame"""
        return self._frame

    @property
    def has_time(self) -> bool:
        """Whether the observations are time-tagged"""
        return "t" in self._frame.columns

    @property
    def values(self) -> np.ndarray:
        """The observed values"""
        return self._frame.get_column("value").to_numpy()

    def coords(self, time_scale: float | None = None) -> np.ndarray:
        """
        Coordinates of the observations.

        Parameters
        ----------
        time_scale : float | None
            If set, the observation times multiplied by this factor are
            appended as a third coordinate, so that time contributes an
            independently scaled term to Euclidean distances.

        Returns
        -------
        coords : numpy.ndarray
            Array of shape (n, 2), or (n, 3) if `time_scale` is set.
        """
        xy = self._frame.select(["x", "y"]).to_numpy()
        if time_scale is None:
            return xy
        if not self.has_time:
            raise ValueError("time_scale requires time-tagged observations")
        t = self._frame.get_column("t").to_numpy() * time_scale
        return np.column_stack([xy, t])

    def subset(self, indices: Iterable[int]) -> "SampleSet":
        """New SampleSet containing only the observations at `indices`"""
        return SampleSet(self._frame[[int(i) for i in indices]])

    def drop(self, indices: Iterable[int]) -> "SampleSet":
        """New SampleSet without the observations at `indices`"""
        keep = np.ones(len(self), dtype=bool)
        keep[list(indices)] = False
        return SampleSet(self._frame.filter(pl.Series(keep)))

    def select_time(self, t: float) -> "SampleSet":
        """New SampleSet containing the observations made at time `t`"""
        if not self.has_time:
            raise ValueError("SampleSet does not contain observation times")
        return SampleSet(self._frame.filter(pl.col("t") == t))

    def to_dict(self) -> Mapping[str, list[float]]:
        """Column-wise representation of the observations"""
        return self._frame.to_dict(as_series=False)

    def __len__(self) -> int:
        return self._frame.height

    def __getitem__(self, index: int) -> Observation:
        row = self._frame.row(index, named=True)
        return Observation(row["x"], row["y"], row["value"], row.get("t"))

    def __iter__(self) -> Iterator[Observation]:
        for row in self._frame.iter_rows(named=True):
            yield Observation(row["x"], row["y"], row["value"], row.get("t"))

    def __repr__(self) -> str:
        time = ", time-tagged" if self.has_time else ""
        return f"SampleSet(n={len(self)}{time})"


def _check_finite(frame: pl.DataFrame) -> None:
    for col in frame.columns:
        vals = frame.get_column(col).to_numpy()
        n_bad = int(np.sum(~np.isfinite(vals)))
        if n_bad:
            raise SampleSetError(
                f"Column '{col}' contains {n_bad} missing or non-finite values"
            )
    return None


def _check_unique_locations(frame: pl.DataFrame) -> None:
    loc_cols = [c for c in frame.columns if c != "value"]
    dup = frame.select(loc_cols).is_duplicated()
    if dup.any():
        dup_locs = frame.filter(dup).select(loc_cols).unique().rows()
        raise DuplicateLocationError(
            f"{len(dup_locs)} location(s) contain more than one observation: "
            + ", ".join(str(loc) for loc in dup_locs[:5])
            + (", ..." if len(dup_locs) > 5 else "")
        )
    return None
