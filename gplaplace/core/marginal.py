# gplaplace/core/marginal.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Negative log marginal likelihood of the Laplace approximation.

    nlZ = alpha'(f - m)/2 - sum(log p(y|f)) + log|I + K s W| / 2

evaluated at the mode f.
"""
import gplaplace.num as gnp
from gplaplace.config import get_logger
from . import linalg

_logger = get_logger()


def half_logdet(state):
    """Return log|I + K s diag(W)| / 2 at the mode.

    Parameters
    ----------
    state : gplaplace.core.state.LaplaceState

    Returns
    -------
    float

    Notes
    -----
    Cholesky branch: L is the upper factor of B = I + sW sWᵀ ⊙ K s, so
    log|B| = 2 sum(log(diag(L))) and the half log-determinant is
    sum(log(diag(L))), with no extra factor. B and I + K s diag(W) share
    their determinant.

    LU branch: log|det(A)| / 2 with A = I + K s diag(W), taken from the
    LU factorization kept by the posterior factor. A negative determinant
    means the approximation is not a proper Gaussian; the absolute value
    is used and a warning is logged.
    """
    factor = state.factor
    if factor.is_cholesky:
        return float(gnp.sum(gnp.log(gnp.diag(factor.L))))
    sign, logabsdet = linalg.lu_logabsdet(factor.lu_piv)
    if sign < 0:
        _logger.warning(
            "det(I + K W) < 0 at the mode: the Laplace approximation is not "
            "positive definite"
        )
    return 0.5 * logabsdet


def negative_log_marginal_likelihood(state, likelihood, labels):
    """Compute nlZ for a converged `LaplaceState`.

    Parameters
    ----------
    state : gplaplace.core.state.LaplaceState
    likelihood : LikelihoodModel
    labels : ndarray, shape (n,)

    Returns
    -------
    nlZ : float
    """
    lp = gnp.sum(likelihood.log_probability(labels, state.mu))
    fit = gnp.dot(state.alpha, state.mu - state.mean_f) / 2.0
    return float(fit - lp + half_logdet(state))
