# gplaplace/core/gradients.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Derivatives of the Laplace negative log marginal likelihood.

All targets share three quantities computed from the factorization
(see `precompute`):

- Z: matrix such that d(log|B|/2)/dK = Z/2 through the explicit K
  dependence,
- g: half the diagonal of the approximate posterior covariance, which
  is the derivative of log|B|/2 with respect to W,
- dfhat = g ⊙ d3lp: derivative of nlZ with respect to the mode through
  its implicit dependence on the hyperparameters.

Each derivative combines an explicit term with the implicit term
-dfhatᵀ (b - K s Z b), where b is the derivative of the mode equation
right-hand side for the target (Rasmussen & Williams, eqs. 5.23-5.24).
"""
import gplaplace.num as gnp
from . import linalg


def precompute(state):
    """Compute Z, g and dfhat for a converged state and cache them on it.

    Parameters
    ----------
    state : gplaplace.core.state.LaplaceState

    Returns
    -------
    (Z, g, dfhat) : tuple of ndarrays
    """
    Ks = state.Ks
    factor = state.factor
    if factor.is_cholesky:
        L, sW = factor.L, factor.sW
        # solve L'L Z = diag(sW), then Z = diag(sW) Z
        Z = linalg.cholesky_solve_upper(L, gnp.diag(sW))
        Z = sW[:, None] * Z
        # L' C = diag(sW) K s
        C = gnp.solve_triangular(L, sW[:, None] * Ks, trans="T", lower=False)
        g = (gnp.diag(Ks) - gnp.sum(C * C, axis=0)) / 2.0
    else:
        Z = -factor.L
        iA = linalg.lu_inverse(factor.lu_piv)
        g = gnp.sum(iA * Ks, axis=1) / 2.0
    dfhat = g * state.d3lp
    state.Z, state.g, state.dfhat = Z, g, dfhat
    return Z, g, dfhat


def _implicit_term(state, b):
    """dfhatᵀ (b - K s (Z b))."""
    return gnp.dot(state.dfhat, b - gnp.matmul(state.Ks, gnp.matmul(state.Z, b)))


def derivative_wrt_scale(state):
    """dnlZ / dlog_scale, as an array with one element.

    The explicit terms use the unscaled K; dKs/dlog_scale = 2 s K.
    """
    K, Z, alpha = state.K, state.Z, state.alpha
    result = gnp.sum(Z * K) / 2.0 - gnp.dot(alpha, gnp.matmul(K, alpha)) / 2.0
    b = gnp.matmul(K, state.dlp)
    result = result - _implicit_term(state, b)
    return gnp.asarray([result * state.scale * 2.0])


def derivative_wrt_kernel(state, kernel, features, param):
    """dnlZ / dtheta for each element of a kernel hyperparameter.

    The kernel is bound to features before its gradients are taken.

    Parameters
    ----------
    state : LaplaceState
    kernel : KernelProvider
    features : array_like, shape (n, d)
    param : Hyperparameter

    Returns
    -------
    ndarray, shape (param.size,)
    """
    kernel.init(features)
    Z, alpha = state.Z, state.alpha
    result = gnp.zeros(param.size)
    for i in range(param.size):
        if param.size == 1:
            dK = kernel.get_parameter_gradient(param)
        else:
            dK = kernel.get_parameter_gradient(param, i)
        r = gnp.sum(Z * dK) / 2.0 - gnp.dot(alpha, gnp.matmul(dK, alpha)) / 2.0
        b = gnp.matmul(dK, state.dlp)
        r = r - _implicit_term(state, b)
        result[i] = r * state.scale
    return result


def derivative_wrt_mean(state, mean, features, param):
    """dnlZ / dtheta for each element of a mean hyperparameter.

    Returns
    -------
    ndarray, shape (param.size,)
    """
    alpha = state.alpha
    result = gnp.zeros(param.size)
    for i in range(param.size):
        if param.size == 1:
            dm = mean.get_parameter_derivative(features, param)
        else:
            dm = mean.get_parameter_derivative(features, param, i)
        result[i] = -gnp.dot(alpha, dm) - _implicit_term(state, dm)
    return result


def derivative_wrt_likelihood(state, likelihood, labels, param):
    """dnlZ / dtheta for a likelihood hyperparameter.

    lp_dhyp, dlp_dhyp and d2lp_dhyp are the derivatives of log p(y|f),
    d log p/df and d2 log p/df2 with respect to the hyperparameter, at
    the mode. b = K s dlp_dhyp.

    Returns
    -------
    ndarray, shape (param.size,)
    """
    f = state.mu
    result = gnp.zeros(param.size)
    for i in range(param.size):
        index = None if param.size == 1 else i
        lp_dhyp = likelihood.first_derivative(labels, f, param, index)
        dlp_dhyp = likelihood.second_derivative(labels, f, param, index)
        d2lp_dhyp = likelihood.third_derivative(labels, f, param, index)
        b = gnp.matmul(state.Ks, dlp_dhyp)
        result[i] = (
            -gnp.dot(state.g, d2lp_dhyp)
            - gnp.sum(lp_dhyp)
            - _implicit_term(state, b)
        )
    return result
