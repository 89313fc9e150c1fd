# gplaplace/core/linalg.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Linear-algebra utilities shared across gplaplace.core modules.

Every factorization goes through this file so that LAPACK failures and
(near-)singular inputs surface as a single `FactorizationError` instead
of matrices full of NaNs.
"""
import gplaplace.num as gnp
from .utils import FactorizationError, check_finite

# Pivots smaller than this fraction of the largest pivot are treated as zero.
_LU_PIVOT_RTOL = 1e3 * gnp.eps


def upper_cholesky(A):
    """Return the upper-triangular factor U such that A = Uᵀ U.

    Raises
    ------
    FactorizationError
        If A is not finite or not numerically positive definite.
    """
    check_finite("Matrix to factorize", A)
    try:
        U = gnp.cholesky(A, lower=False)
    except gnp.LinAlgError as exc:
        raise FactorizationError(f"Cholesky factorization failed: {exc}") from exc
    return check_finite("Cholesky factor", U)


def cholesky_solve_upper(U, B):
    """Solve (Uᵀ U) X = B given the upper Cholesky factor U."""
    Y = gnp.solve_triangular(U, B, trans="T", lower=False)
    return gnp.solve_triangular(U, Y, lower=False)


def guarded_lu_factor(A):
    """Partial-pivot LU factorization of a general square matrix.

    Parameters
    ----------
    A : array_like, shape (n, n)

    Returns
    -------
    lu_piv : tuple
        (lu, piv) as returned by scipy.linalg.lu_factor.

    Raises
    ------
    FactorizationError
        If A is not finite or has a pivot that is zero relative to the
        largest one.
    """
    check_finite("Matrix to factorize", A)
    try:
        lu, piv = gnp.lu_factor(A, check_finite=False)
    except (gnp.LinAlgError, ValueError) as exc:
        raise FactorizationError(f"LU factorization failed: {exc}") from exc
    u = gnp.abs(gnp.diag(lu))
    umax = gnp.max(u) if u.shape[0] > 0 else 0.0
    if u.shape[0] > 0 and (umax == 0.0 or gnp.min(u) <= _LU_PIVOT_RTOL * umax):
        raise FactorizationError(
            "LU factorization failed: matrix is singular or nearly singular"
        )
    return lu, piv


def lu_inverse(lu_piv):
    """Inverse of A from its LU factorization."""
    lu = lu_piv[0]
    n = lu.shape[0]
    return check_finite("Inverse", gnp.lu_solve(lu_piv, gnp.eye(n), check_finite=False))


def lu_logabsdet(lu_piv):
    """Return (sign, log|det(A)|) from the LU factorization of A."""
    lu, piv = lu_piv
    d = gnp.diag(lu)
    n_swaps = gnp.sum(piv != gnp.arange(piv.shape[0]))
    sign = (-1.0) ** n_swaps * gnp.prod(gnp.sign(d))
    return float(sign), float(gnp.sum(gnp.log(gnp.abs(d))))
