"""
Functions for calculating separation vectors, distances and bearings between
observation locations.

Coordinates are arrays of shape (n, 2) for spatial locations, or (n, 3) where
the third column holds scaled observation times. Distances are Euclidean over
all columns. Anisotropy is applied as a coordinate transform of the
separation vector, only the first two (spatial) components are affected.
"""

import numpy as np
from scipy.spatial.distance import cdist, pdist


def pair_indices(n: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Indices of all unordered pairs of distinct points, in the same order as
    `scipy.spatial.distance.pdist`.
    """
    return np.triu_indices(n, k=1)


def pair_separations(coords: np.ndarray) -> np.ndarray:
    """
    Separation vectors between all unordered pairs of points.

    Parameters
    ----------
    coords : numpy.ndarray
        Point coordinates, shape (n, k).

    Returns
    -------
    delta : numpy.ndarray
        Array of shape (n * (n - 1) / 2, k) containing `coords[j] - coords[i]`
        for each pair `i < j`.
    """
    i, j = pair_indices(coords.shape[0])
    return coords[j] - coords[i]


def pair_distances(coords: np.ndarray) -> np.ndarray:
    """Condensed vector of Euclidean distances between all pairs of points"""
    if coords.shape[0] < 2:
        return np.empty(0, dtype=float)
    return pdist(coords, metric="euclidean")


def distance_matrix(
    coords_a: np.ndarray,
    coords_b: np.ndarray | None = None,
) -> np.ndarray:
    """
    Matrix of Euclidean distances between two sets of points.

    If `coords_b` is not set, the pairwise distances within `coords_a` are
    computed.
    """
    if coords_b is None:
        coords_b = coords_a
    return cdist(coords_a, coords_b, metric="euclidean")


def separation_matrix(
    coords_a: np.ndarray,
    coords_b: np.ndarray | None = None,
) -> np.ndarray:
    """
    Separation vectors between two sets of points, shape (n_a, n_b, k).
    """
    if coords_b is None:
        coords_b = coords_a
    return coords_b[None, :, :] - coords_a[:, None, :]


def bearing(delta: np.ndarray) -> np.ndarray:
    """
    Axial bearing of separation vectors.

    The bearing is measured in degrees counter-clockwise from the +x axis and
    folded into [0, 180), since the separation between an unordered pair of
    points has no preferred sign.

    Parameters
    ----------
    delta : numpy.ndarray
        Separation vectors, only the first two components are used.

    Returns
    -------
    bearing : numpy.ndarray
        Bearings in degrees, in [0, 180).
    """
    angle = np.degrees(np.arctan2(delta[..., 1], delta[..., 0]))
    angle = np.mod(angle, 180.0)
    # mod can round values just below 0 up to exactly 180
    return np.where(angle >= 180.0, 0.0, angle)


def angular_difference(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Absolute difference between axial directions (degrees), in [0, 90]"""
    return np.abs(np.mod(a - b + 90.0, 180.0) - 90.0)


def anisotropic_distance(
    delta: np.ndarray,
    angle: float,
    ratio: float,
) -> np.ndarray:
    r"""
    Effective isotropic distance of separation vectors under geometric
    anisotropy.

    The spatial part of each separation vector is rotated by `-angle` so that
    the major axis of anisotropy is aligned with the first coordinate, then the
    minor-axis component is scaled by `1 / ratio`:

    .. math::
        u = dx \cos\theta + dy \sin\theta

        v = (-dx \sin\theta + dy \cos\theta) / r

        h = \sqrt{u^2 + v^2 + \sum dt^2}

    Parameters
    ----------
    delta : numpy.ndarray
        Separation vectors, shape (..., k) with k >= 2.
    angle : float
        Direction of the major axis, degrees counter-clockwise from +x.
    ratio : float
        Ratio of the minor to the major range, in (0, 1].

    Returns
    -------
    dist : numpy.ndarray
        The effective distance, shape `delta.shape[:-1]`.
    """
    theta = np.radians(angle)
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    dx = delta[..., 0]
    dy = delta[..., 1]
    u = dx * cos_t + dy * sin_t
    v = (-dx * sin_t + dy * cos_t) / ratio
    sq = u**2 + v**2
    if delta.shape[-1] > 2:
        sq = sq + np.sum(delta[..., 2:] ** 2, axis=-1)
    return np.sqrt(sq)
