"""
Variograms
----------

Variogram families and the `VariogramModel` used by Kriging and
cross-validation.

The set of families is closed: `SphericalVariogram`, `ExponentialVariogram`
and `GaussianVariogram`, registered in `VARIOGRAM_FAMILIES` by name. Each
evaluates the isotropic form of the variogram from a distance array.
Anisotropy is handled by `VariogramModel` as a transform of the separation
vector before evaluation, so the families themselves are always isotropic.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import asdict, dataclass, replace
from typing import Any
import numpy as np

from .distances import anisotropic_distance, distance_matrix, separation_matrix
from .types import VariogramFamily


@dataclass(frozen=True)
class Variogram(ABC):
    """
    Generic Variogram Class - defines the abstract class

    Parameters
    ----------
    psill : float
        The partial sill, the variance of the spatially correlated component.
    nugget : float
        The value of the variogram as distance tends to 0.
    range : float
        The range parameter.
    """

    psill: float
    nugget: float
    range: float

    @abstractmethod
    def evaluate(self, distance: np.ndarray) -> np.ndarray:
        """Evaluate the Variogram at an array of distances"""
        raise NotImplementedError("Not implemented for base Variogram class")


@dataclass(frozen=True)
class SphericalVariogram(Variogram):
    """
    Spherical Model

    Reaches the sill exactly at the range, and is constant beyond it.
    """

    def evaluate(self, distance: np.ndarray) -> np.ndarray:
        """Evaluate the SphericalVariogram at an array of distances"""
        hr = np.minimum(np.asarray(distance, dtype=float) / self.range, 1.0)
        return self.nugget + self.psill * (1.5 * hr - 0.5 * hr**3)


@dataclass(frozen=True)
class ExponentialVariogram(Variogram):
    """
    Exponential Model

    Approaches the sill asymptotically, reaching 95% of the partial sill at
    three times the range.
    """

    def evaluate(self, distance: np.ndarray) -> np.ndarray:
        """Evaluate the ExponentialVariogram at an array of distances"""
        distance = np.asarray(distance, dtype=float)
        return self.nugget + self.psill * (1.0 - np.exp(-distance / self.range))


@dataclass(frozen=True)
class GaussianVariogram(Variogram):
    """
    Gaussian Model

    Parabolic near the origin, for very smooth fields.
    """

    def evaluate(self, distance: np.ndarray) -> np.ndarray:
        """Evaluate the GaussianVariogram at an array of distances"""
        distance = np.asarray(distance, dtype=float)
        return self.nugget + self.psill * (
            1.0 - np.exp(-np.power(distance / self.range, 2.0))
        )


VARIOGRAM_FAMILIES: dict[str, type[Variogram]] = {
    "spherical": SphericalVariogram,
    "exponential": ExponentialVariogram,
    "gaussian": GaussianVariogram,
}


@dataclass(frozen=True)
class Anisotropy:
    """
    Geometric anisotropy.

    Parameters
    ----------
    angle : float
        Direction of the major axis (longest range), in degrees
        counter-clockwise from the +x axis. Must be in [0, 180).
    ratio : float
        Ratio of the minor-axis range to the major-axis range, in (0, 1].
    """

    angle: float
    ratio: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.angle < 180.0:
            raise ValueError(
                f"Anisotropy angle must be in [0, 180), got {self.angle}"
            )
        if not 0.0 < self.ratio <= 1.0:
            raise ValueError(
                f"Anisotropy ratio must be in (0, 1], got {self.ratio}"
            )
        return None


@dataclass(frozen=True)
class VariogramModel:
    """
    A fitted (or prescribed) variogram model.

    The variogram is 0 at zero separation, and `nugget + f(h)` for any
    positive separation `h`, where `f` is the partial-sill form of the
    selected family.

    Parameters
    ----------
    family : VariogramFamily
        One of "spherical", "exponential", "gaussian".
    nugget : float
        Non-negative nugget.
    partial_sill : float
        Non-negative partial sill.
    range : float
        Positive range parameter.
    anisotropy : Anisotropy | None
        Optional geometric anisotropy.
    """

    family: VariogramFamily
    nugget: float
    partial_sill: float
    range: float
    anisotropy: Anisotropy | None = None

    def __post_init__(self) -> None:
        if self.family not in VARIOGRAM_FAMILIES:
            raise ValueError(
                f"Unknown variogram family '{self.family}', expected one of "
                + ", ".join(VARIOGRAM_FAMILIES)
            )
        for name in ("nugget", "partial_sill", "range"):
            if not np.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite")
        if self.nugget < 0:
            raise ValueError(f"nugget must be non-negative, got {self.nugget}")
        if self.partial_sill < 0:
            raise ValueError(
                f"partial_sill must be non-negative, got {self.partial_sill}"
            )
        if self.range <= 0:
            raise ValueError(f"range must be positive, got {self.range}")
        return None

    @property
    def sill(self) -> float:
        """Total variance, nugget + partial_sill"""
        return self.nugget + self.partial_sill

    @property
    def variogram(self) -> Variogram:
        """The isotropic family form of this model"""
        return VARIOGRAM_FAMILIES[self.family](
            psill=self.partial_sill, nugget=self.nugget, range=self.range
        )

    def evaluate(self, distance: np.ndarray | float) -> np.ndarray:
        """
        Evaluate the isotropic variogram at (effective) distances.

        Distances of exactly 0 give 0, NaN distances give NaN.
        """
        distance = np.asarray(distance, dtype=float)
        return np.where(distance == 0, 0.0, self.variogram.evaluate(distance))

    def effective_distance(self, delta: np.ndarray) -> np.ndarray:
        """
        Distance of separation vectors, accounting for any anisotropy.

        Parameters
        ----------
        delta : numpy.ndarray
            Separation vectors, shape (..., k).
        """
        if self.anisotropy is None:
            return np.linalg.norm(delta, axis=-1)
        return anisotropic_distance(
            delta, self.anisotropy.angle, self.anisotropy.ratio
        )

    def evaluate_separation(self, delta: np.ndarray) -> np.ndarray:
        """Evaluate the variogram for separation vectors"""
        return self.evaluate(self.effective_distance(delta))

    def matrix(
        self,
        coords_a: np.ndarray,
        coords_b: np.ndarray | None = None,
    ) -> np.ndarray:
        """
        Variogram matrix between two sets of points.

        Parameters
        ----------
        coords_a : numpy.ndarray
            Coordinates of the first set of points, shape (n_a, k).
        coords_b : numpy.ndarray | None
            Coordinates of the second set of points, shape (n_b, k). If not
            set, the matrix between points in `coords_a` is computed.

        Returns
        -------
        gamma : numpy.ndarray
            Matrix of shape (n_a, n_b).
        """
        if self.anisotropy is None:
            return self.evaluate(distance_matrix(coords_a, coords_b))
        return self.evaluate_separation(separation_matrix(coords_a, coords_b))

    def with_parameters(self, **kwargs) -> "VariogramModel":
        """Copy of this model with some parameters replaced"""
        return replace(self, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Plain representation, suitable for YAML or JSON output"""
        out = asdict(self)
        out["nugget"] = float(self.nugget)
        out["partial_sill"] = float(self.partial_sill)
        out["range"] = float(self.range)
        return out

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "VariogramModel":
        """
        Create a model from a mapping of parameters.

        Anisotropy can be given either as an "anisotropy" mapping with "angle"
        and "ratio" keys, or as top-level "angle" and "ratio" keys.
        """
        aniso = params.get("anisotropy")
        if aniso is None and "angle" in params and "ratio" in params:
            aniso = {"angle": params["angle"], "ratio": params["ratio"]}
        return cls(
            family=params["family"],
            nugget=float(params.get("nugget", 0.0)),
            partial_sill=float(params["partial_sill"]),
            range=float(params["range"]),
            anisotropy=None
            if aniso is None
            else Anisotropy(float(aniso["angle"]), float(aniso["ratio"])),
        )
