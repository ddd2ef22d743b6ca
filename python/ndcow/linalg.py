"""A few linear algebra operations on two-dimensional arrays.

All routines work through the public NDArray contract: element indexing,
row iteration and axis-swapped views. Inputs are not checked for numerical
preconditions (symmetry, positive definiteness, full column rank); violating
them yields NaN or inf entries rather than an exception, and a warning is
logged when a Cholesky pivot is not positive.
"""

import itertools
import logging
from typing import Any

import numpy as np

from ndcow.backend.ndarray import NDArray, Si, zeros
from ndcow.exceptions import ShapeError

logger = logging.getLogger(__name__)


def _float_dtype(*arrays: NDArray) -> np.dtype:
    dtype = np.result_type(*(a.dtype for a in arrays))
    return dtype if dtype.kind in "fc" else np.dtype(np.float64)


def _square(a: NDArray, name: str) -> int:
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ShapeError(f"{name} must be a square matrix, got shape {a.shape}")
    return a.shape[0]


def _check_rhs(b: NDArray, n: int) -> None:
    if b.shape != (n,):
        raise ShapeError(f"right-hand side must have shape ({n},), got {b.shape}")


def eye(n: int, dtype: Any = None) -> NDArray:
    """Return the identity matrix of dimension ``n``."""
    out = zeros((n, n), dtype=dtype)
    for i in range(n):
        out[i, i] = 1
    return out


def cholesky(a: NDArray) -> NDArray:
    """Factor ``a = L L.T`` and return the lower-triangular ``L``.

    ``a`` should be symmetric and positive definite; this is not verified.
    Only the lower triangle of ``a`` is read.

    Parameters
    ----------
    a : NDArray
        Square matrix of shape ``(n, n)``.

    Returns
    -------
    NDArray
        Lower-triangular factor of shape ``(n, n)``.

    Raises
    ------
    ShapeError
        If ``a`` is not square.
    """
    n = _square(a, "cholesky input")
    L = zeros((n, n), dtype=_float_dtype(a))
    with np.errstate(divide="ignore", invalid="ignore"):
        for i in range(n):
            # entries before the diagonal
            for j in range(i):
                lik_ljk_sum = 0.0
                for lik, ljk in itertools.islice(zip(L.row_iter(i), L.row_iter(j)), j):
                    lik_ljk_sum += lik * ljk
                L[i, j] = (a[i, j] - lik_ljk_sum) / L[j, j]

            # diagonal: L[i, i] = sqrt(a[i, i] - sum(L[i, k]^2 for k < i))
            ljk_sum = 0.0
            for ljk in itertools.islice(L.row_iter(i), i):
                ljk_sum += ljk * ljk
            pivot = a[i, i] - ljk_sum
            if not pivot > 0:
                logger.warning(
                    "cholesky: non-positive pivot %r at row %d; "
                    "input is not positive definite",
                    pivot,
                    i,
                )
            L[i, i] = np.sqrt(pivot)
    return L


def subst_fw(l: NDArray, b: NDArray) -> NDArray:
    """Solve ``L x = b`` where ``L`` is lower triangular."""
    m = _square(l, "L")
    _check_rhs(b, m)
    x = zeros(m, dtype=_float_dtype(l, b))
    for i, bi in enumerate(b):
        # b[i] - sum(L[i, j] * x[j] for j < i)
        b_lx_sum = bi
        for lij, xj in itertools.islice(zip(l.row_iter(i), x), i):
            b_lx_sum = b_lx_sum - lij * xj
        x[i] = b_lx_sum / l[i, i]
    return x


def subst_bw(u: NDArray, b: NDArray) -> NDArray:
    """Solve ``U x = b`` where ``U`` is upper triangular."""
    m = _square(u, "U")
    _check_rhs(b, m)
    x = zeros(m, dtype=_float_dtype(u, b))
    backwards = [Si(0, None, -1)]
    for i in range(m - 1, -1, -1):
        # b[i] - sum(U[i, j] * x[j] for j > i), walking both from the end
        b_ux_sum = b[i]
        pairs = zip(u.subview(0, i).slice(backwards).iter(), x.slice(backwards).iter())
        for uij, xj in itertools.islice(pairs, m - i - 1):
            b_ux_sum = b_ux_sum - uij * xj
        x[i] = b_ux_sum / u[i, i]
    return x


def least_squares(a: NDArray, b: NDArray) -> NDArray:
    """Solve ``a x = b`` with a linear least squares fit.

    Used for overdetermined systems, where ``a`` has more rows than there are
    unknowns. The normal equations ``a.T a x = a.T b`` are solved by factoring
    ``a.T a = L L.T``, forward substitution for ``L z = a.T b`` and backward
    substitution for ``L.T x = z``. ``a`` is assumed to have full column rank.

    Parameters
    ----------
    a : NDArray
        Design matrix of shape ``(m, n)``.
    b : NDArray
        Observations of shape ``(m,)``.

    Returns
    -------
    NDArray
        Best fit ``x`` of shape ``(n,)``.
    """
    if a.ndim != 2:
        raise ShapeError(f"least_squares needs a 2-D matrix, got shape {a.shape}")
    m, n = a.shape
    _check_rhs(b, m)

    a_t = a.clone()
    a_t.swap_axes(0, 1)

    a_t_a = a_t @ a
    L = cholesky(a_t_a)
    rhs = (a_t @ b.reshape((m, 1))).reshape(n)

    # solve L z = a.T b
    z = subst_fw(L, rhs)

    # solve L.T x = z
    L.swap_axes(0, 1)
    return subst_bw(L, z)
