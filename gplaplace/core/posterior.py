# gplaplace/core/posterior.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Factorization of the curvature matrix at the posterior mode.

Two strategies, selected by the sign pattern of W = -d2lp:

- "cholesky" (min(W) >= 0): L is the upper Cholesky factor of
  B = I + (sW sWᵀ) ⊙ (K s), with sW = sqrt(W).
- "lu" (min(W) < 0): B is indefinite and is never formed. A = I + K s
  diag(W) is LU-factorized and L = diag(W) (-A⁻¹), which is a dense,
  non-triangular matrix.

Here s = exp(2 * log_scale) is the kernel scale.
"""
import gplaplace.num as gnp
from gplaplace.config import get_logger
from . import linalg

CHOLESKY = "cholesky"
LU = "lu"

_logger = get_logger()


class PosteriorFactor:
    """Result of `factorize`.

    Attributes
    ----------
    kind : {"cholesky", "lu"}
        Factorization branch.
    L : ndarray, shape (n, n)
        Upper Cholesky factor of B (cholesky) or diag(W) (-A⁻¹) (lu).
    sW : ndarray, shape (n,)
        Signed square root of W.
    lu_piv : tuple or None
        LU factorization of A = I + K s diag(W) (lu branch only).
    """

    def __init__(self, kind, L, sW, lu_piv=None):
        self.kind = kind
        self.L = L
        self.sW = sW
        self.lu_piv = lu_piv

    def __repr__(self):
        return f"PosteriorFactor(kind={self.kind!r}, n={self.L.shape[0]})"

    @property
    def is_cholesky(self):
        return self.kind == CHOLESKY


def signed_sqrt(W):
    """sqrt(|W|) * sign(W), written so that no sqrt of a negative is taken."""
    aW = gnp.abs(W)
    return gnp.sqrt((aW + W) / 2.0) - gnp.sqrt((aW - W) / 2.0)


def curvature_cholesky(Ks, sW):
    """Upper Cholesky factor of I + (sW sWᵀ) ⊙ Ks."""
    n = Ks.shape[0]
    B = gnp.outer(sW, sW) * Ks + gnp.eye(n)
    return linalg.upper_cholesky(B)


def factorize(K, scale, W):
    """Factorize the curvature matrix at the mode.

    Parameters
    ----------
    K : ndarray, shape (n, n)
        Unscaled kernel matrix.
    scale : float
        Kernel scale exp(2 * log_scale).
    W : ndarray, shape (n,)
        Negative second derivative of log p(y|f) at the mode.

    Returns
    -------
    PosteriorFactor

    Raises
    ------
    FactorizationError
        If the Cholesky or LU factorization fails.
    """
    sW = signed_sqrt(W)
    Ks = K * scale
    n = K.shape[0]
    if gnp.min(W) < 0.0:
        _logger.debug("factorize: W has negative entries, using LU branch")
        A = gnp.eye(n) + Ks * W[None, :]
        lu_piv = linalg.guarded_lu_factor(A)
        iA = linalg.lu_inverse(lu_piv)
        L = W[:, None] * (-iA)
        return PosteriorFactor(LU, L, sW, lu_piv)

    _logger.debug("factorize: W non-negative, using Cholesky branch")
    L = curvature_cholesky(Ks, sW)
    return PosteriorFactor(CHOLESKY, L, sW)


def posterior_covariance(K, scale, factor, W):
    """Covariance of the Gaussian approximation at the training inputs.

    Sigma = (K⁻¹ + W)⁻¹, computed without inverting K.

    Parameters
    ----------
    K : ndarray, shape (n, n)
        Unscaled kernel matrix.
    scale : float
    factor : PosteriorFactor
    W : ndarray, shape (n,)

    Returns
    -------
    Sigma : ndarray, shape (n, n)

    Notes
    -----
    Cholesky branch: with V = L⁻ᵀ diag(sW) K s,
    Sigma = K s - Vᵀ V.
    LU branch: Sigma = A⁻¹ K s with A = I + K s diag(W).
    """
    Ks = K * scale
    if factor.is_cholesky:
        V = gnp.solve_triangular(factor.L, factor.sW[:, None] * Ks, trans="T", lower=False)
        return Ks - gnp.matmul(V.T, V)
    return gnp.lu_solve(factor.lu_piv, Ks, check_finite=False)
