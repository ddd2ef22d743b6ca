import logging

import numpy as np
import pytest
from ndcow import linalg
from ndcow.backend import ndarray as nd
from ndcow.exceptions import ShapeError


def random_spd(n: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    m = rng.standard_normal((n, n))
    return m @ m.T + n * np.eye(n)


def test_eye() -> None:
    a = linalg.eye(3)
    np.testing.assert_array_equal(a.numpy(), np.eye(3))
    assert a.dtype == np.float64
    assert linalg.eye(0).shape == (0, 0)
    assert linalg.eye(2, dtype=np.int64).dtype == np.int64


@pytest.mark.parametrize("n", [1, 2, 5, 8])
def test_cholesky(n: int) -> None:
    _A = random_spd(n, seed=n)
    L = linalg.cholesky(nd.array(_A))
    np.testing.assert_allclose(L.numpy(), np.linalg.cholesky(_A), atol=1e-10, rtol=1e-10)
    # upper triangle stays zero
    np.testing.assert_array_equal(np.triu(L.numpy(), 1), np.zeros((n, n)))
    np.testing.assert_allclose(L.numpy() @ L.numpy().T, _A, atol=1e-10, rtol=1e-10)


def test_cholesky_integer_input() -> None:
    a = nd.arr2([[4, 2], [2, 5]])
    L = linalg.cholesky(a)
    assert L.dtype == np.float64
    assert L == nd.arr2([[2.0, 0.0], [1.0, 2.0]])


@pytest.mark.parametrize("n", [1, 3, 6])
def test_triangular_solves(n: int) -> None:
    _A = random_spd(n, seed=10 + n)
    _x = np.random.default_rng(n).standard_normal(n)
    _b = _A @ _x
    L = linalg.cholesky(nd.array(_A))
    z = linalg.subst_fw(L, nd.array(_b))
    np.testing.assert_allclose(z.numpy(), np.linalg.solve(L.numpy(), _b), atol=1e-10, rtol=1e-8)

    U = L.clone()
    U.swap_axes(0, 1)
    x = linalg.subst_bw(U, z)
    np.testing.assert_allclose(x.numpy(), _x, atol=1e-8, rtol=1e-8)
    # solving does not disturb the factor shared with U
    np.testing.assert_allclose(L.numpy().T, U.numpy())


def test_least_squares_square_system() -> None:
    _A = random_spd(4, seed=3)
    _x = np.array([1.0, -2.0, 0.5, 3.0])
    x = linalg.least_squares(nd.array(_A), nd.array(_A @ _x))
    np.testing.assert_allclose(x.numpy(), _x, atol=1e-8, rtol=1e-8)


def test_least_squares_line_fit() -> None:
    # y = 1 + 2 t at t = 0, 1, 2
    a = nd.arr2([[1.0, 0.0], [1.0, 1.0], [1.0, 2.0]])
    b = nd.arr1([1.0, 3.0, 5.0])
    x = linalg.least_squares(a, b)
    np.testing.assert_allclose(x.numpy(), [1.0, 2.0], atol=1e-12)
    # inputs are left as they were
    assert a == nd.arr2([[1.0, 0.0], [1.0, 1.0], [1.0, 2.0]])
    assert a.is_standard_layout()


def test_least_squares_overdetermined_matches_numpy() -> None:
    rng = np.random.default_rng(7)
    _A = rng.standard_normal((20, 3))
    _b = rng.standard_normal(20)
    x = linalg.least_squares(nd.array(_A), nd.array(_b))
    expected, *_ = np.linalg.lstsq(_A, _b, rcond=None)
    np.testing.assert_allclose(x.numpy(), expected, atol=1e-8, rtol=1e-8)


def test_cholesky_not_positive_definite(caplog: pytest.LogCaptureFixture) -> None:
    a = nd.arr2([[1.0, 2.0], [2.0, 1.0]])
    with caplog.at_level(logging.WARNING, logger="ndcow.linalg"):
        L = linalg.cholesky(a)
    assert np.isnan(L[1, 1])
    assert "non-positive pivot" in caplog.text


def test_shape_errors() -> None:
    with pytest.raises(ShapeError):
        linalg.cholesky(nd.zeros((2, 3)))
    with pytest.raises(ShapeError):
        linalg.subst_fw(linalg.eye(3), nd.zeros(2))
    with pytest.raises(ShapeError):
        linalg.subst_bw(nd.zeros(3), nd.zeros(3))
    with pytest.raises(ShapeError):
        linalg.least_squares(nd.zeros(3), nd.zeros(3))
    with pytest.raises(ShapeError):
        linalg.least_squares(nd.zeros((3, 2)), nd.zeros(2))
