import pytest  # noqa: F401
import numpy as np

from irradiance_kriging.distances import (
    angular_difference,
    anisotropic_distance,
    bearing,
    distance_matrix,
    pair_distances,
    pair_separations,
    separation_matrix,
)


@pytest.mark.parametrize(
    "delta, expected",
    [
        ((1.0, 0.0), 0.0),
        ((0.0, 1.0), 90.0),
        ((1.0, 1.0), 45.0),
        ((-1.0, 1.0), 135.0),
        ((-1.0, 0.0), 0.0),
        ((1.0, -1.0), 135.0),
        ((0.0, -2.0), 90.0),
    ],
)
def test_bearing(delta, expected) -> None:  # noqa: D103
    assert np.isclose(bearing(np.array(delta)), expected)
    return None


def test_angular_difference() -> None:  # noqa: D103
    a = np.array([170.0, 0.0, 45.0, 10.0])
    b = np.array([10.0, 90.0, 135.0, 10.0])
    assert np.allclose(angular_difference(a, b), [20.0, 90.0, 90.0, 0.0])
    return None


def test_pair_distances() -> None:  # noqa: D103
    rng = np.random.default_rng(7)
    coords = rng.uniform(0, 10, size=(6, 2))

    dist = pair_distances(coords)
    mat = distance_matrix(coords)
    i, j = np.triu_indices(6, k=1)

    assert dist.shape == (15,)
    assert np.allclose(dist, mat[i, j])
    assert np.allclose(np.linalg.norm(pair_separations(coords), axis=1), dist)
    assert pair_distances(coords[:1]).shape == (0,)
    return None


def test_separation_matrix() -> None:  # noqa: D103
    a = np.array([[0.0, 0.0], [1.0, 1.0]])
    b = np.array([[2.0, 0.0], [0.0, 3.0], [1.0, 1.0]])

    sep = separation_matrix(a, b)
    assert sep.shape == (2, 3, 2)
    assert np.allclose(sep[1, 0], [1.0, -1.0])
    assert np.allclose(np.linalg.norm(sep, axis=-1), distance_matrix(a, b))
    return None


def test_anisotropic_distance() -> None:  # noqa: D103
    delta = np.array([[1.0, 0.0], [0.0, 1.0], [3.0, 4.0]])

    assert np.allclose(
        anisotropic_distance(delta, 0.0, 1.0), [1.0, 1.0, 5.0]
    )
    # Minor axis separations are stretched
    assert np.allclose(
        anisotropic_distance(delta, 0.0, 0.5), [1.0, 2.0, np.sqrt(73.0)]
    )
    # Rotating the major axis swaps the roles of x and y
    assert np.allclose(anisotropic_distance(delta, 90.0, 0.5)[:2], [2.0, 1.0])
    return None


def test_anisotropic_distance_time() -> None:  # noqa: D103
    delta = np.array([[3.0, 0.0, 4.0]])
    assert np.allclose(anisotropic_distance(delta, 0.0, 1.0), [5.0])
    # The time component is not scaled by the ratio
    assert np.allclose(anisotropic_distance(delta, 90.0, 0.5), [np.sqrt(52.0)])
    return None
