# gplaplace/kernel/matern.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
from math import sqrt
import gplaplace.num as gnp
from .base import KernelProvider
from .exponential import exponential_kernel, exponential_kernel_derivative


def matern32_kernel(h):
    """Matérn 3/2 kernel.

    .. math::
        K(h) = (1 + 2\\sqrt{3/2}\\,h) \\exp(-2\\sqrt{3/2}\\,h)

    Parameters
    ----------
    h : gnp.array
        Distances between points.

    Returns
    -------
    gnp.array
        Kernel values.
    """
    nu = 3.0 / 2.0
    c = 2.0 * sqrt(nu)
    t = c * h
    return (1.0 + t) * gnp.exp(-t)


def maternp_kernel(p: int, h):
    """Matérn kernel with half-integer regularity :math:`\\nu = p + 1/2`.

    Using the half-integer simplification (Watson 1922; Abramowitz & Stegun):

    .. math::
        K(h) = \\exp(-2\\sqrt{\\nu}\\,h)\\,
               \\frac{\\Gamma(p+1)}{\\Gamma(2p+1)}
               \\sum_{i=0}^{p} \\frac{(p+i)!}{i!(p-i)!}\\,(4\\sqrt{\\nu}h)^{\\,p-i}

    Parameters
    ----------
    p : int
        Nonnegative integer with :math:`\\nu = p+1/2`.
    h : gnp.array
        Distances.

    Returns
    -------
    gnp.array
        Kernel values.
    """
    gln = gnp.compute_gammaln(p)
    h = gnp.inftobigf(h)
    c = 2.0 * sqrt(p + 0.5)
    twoch = 2.0 * c * h
    polynomial = gnp.ones(h.shape)
    for i in range(p):
        exp_log_combination = gnp.exp(
            gln[p + 1] - gln[2 * p + 1] + gln[p + i + 1] - gln[i + 1] - gln[p - i + 1]
        )
        polynomial += exp_log_combination * (twoch ** (p - i))
    return gnp.exp(-c * h) * polynomial


class MaternKernel(KernelProvider):
    """Anisotropic Matérn kernel with regularity :math:`\\nu = p + 1/2`
    and unit variance.

    .. math::
        K_{ij} = k_p(h_{ij}) + \\epsilon \\delta_{ij}, \\quad
        h_{ij} = \\Big(\\sum_k \\rho_k^{-2} (x_{ik} - x_{jk})^2\\Big)^{1/2}

    Parameters
    ----------
    p : int
        Half-integer regularity index.
    loginvrho : array_like, shape (d,)
        log(1/rho_k), one element per input dimension.

    Notes
    -----
    Derivatives with respect to loginvrho are analytic for p = 0 and p = 1
    and computed by a 5-point central difference for higher p.
    """

    fd_step = 1e-4

    def __init__(self, p=1, loginvrho=(0.0,)):
        if int(p) != p or p < 0:
            raise ValueError("p must be a nonnegative integer")
        super().__init__(loginvrho=loginvrho)
        self.p = int(p)

    def __repr__(self):
        return f"MaternKernel(p={self.p}, loginvrho={self.params.get('loginvrho').tolist()})"

    def config_bytes(self):
        return f"p={self.p}".encode()

    def _nugget(self, n):
        return 10.0 * gnp.eps * gnp.eye(n)

    def _covariance(self, x, loginvrho):
        h = gnp.scaled_distance(loginvrho, x, x)
        if self.p == 0:
            k = exponential_kernel(sqrt(2.0) * h)
        elif self.p == 1:
            k = matern32_kernel(h)
        else:
            k = maternp_kernel(self.p, h)
        return k + self._nugget(x.shape[0])

    def _check_dimension(self, x):
        d = self.params.get("loginvrho").shape[0]
        if x.shape[1] != d:
            raise ValueError(
                f"MaternKernel has {d} length scale(s), but features have "
                f"{x.shape[1]} column(s)"
            )

    def _kernel_matrix(self, x):
        self._check_dimension(x)
        return self._covariance(x, self.params.get("loginvrho"))

    def _parameter_gradient(self, x, name, index):
        self._check_dimension(x)
        loginvrho = self.params.get("loginvrho")
        h = gnp.scaled_distance(loginvrho, x, x)
        # dh / dloginvrho_j = D_j^2 / h
        D2 = gnp.scaled_differences_sqrd(loginvrho, x, x, index)

        if self.p == 0:
            c = sqrt(2.0)
            dk = c * exponential_kernel_derivative(c * h)
            safe_h = gnp.where(h > 0.0, h, 1.0)
            return gnp.where(h > 0.0, dk * D2 / safe_h, 0.0)

        if self.p == 1:
            c = 2.0 * sqrt(1.5)
            # k'(h) = -c^2 h exp(-c h), so k'(h) / h is regular at 0
            return -c * c * gnp.exp(-c * h) * D2

        def covariance_at(t):
            theta = gnp.copy(loginvrho)
            theta[index] = t
            return self._covariance(x, theta)

        return gnp.derivative_finite_diff(covariance_at, float(loginvrho[index]), self.fd_step)
