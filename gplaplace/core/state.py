# gplaplace/core/state.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Snapshot of one Laplace update cycle.
"""
import gplaplace.num as gnp


class LaplaceState:
    """Quantities computed by one `update()` of the inference engine.

    A new instance is built for every update and published only once the
    mode and the factorization are both available, so readers never see
    a half-updated state. Arrays are not copied on access and must not be
    modified by callers.

    Attributes
    ----------
    K : ndarray, shape (n, n)
        Unscaled kernel matrix.
    scale : float
        Kernel scale factor exp(2 * log_scale).
    mean_f : ndarray, shape (n,)
        Prior mean at the training inputs.
    alpha : ndarray, shape (n,)
        Dual coordinates, f = K * scale * alpha + mean_f.
    mu : ndarray, shape (n,)
        Posterior mode f.
    psi : float
        Psi(alpha) = alpha'(f - m)/2 - sum(log p(y|f)).
    dlp, d2lp, d3lp : ndarray, shape (n,)
        Derivatives of log p(y|f) with respect to f at the mode.
    W : ndarray, shape (n,)
        -d2lp.
    factor : gplaplace.core.posterior.PosteriorFactor
        Factorization of the curvature matrix (holds L and sW).
    stamp : str
        Configuration hash the state was built for.
    """

    def __init__(self, K, scale, mean_f, alpha, mu, psi, stamp=None):
        self.K = K
        self.scale = scale
        self.mean_f = mean_f
        self.alpha = alpha
        self.mu = mu
        self.psi = psi
        self.stamp = stamp
        self.dlp = None
        self.d2lp = None
        self.d3lp = None
        self.W = None
        self.factor = None
        # gradient precompute, filled lazily
        self.Z = None
        self.g = None
        self.dfhat = None

    def __repr__(self):
        kind = self.factor.kind if self.factor is not None else None
        return (
            f"<LaplaceState n={self.n} psi={self.psi:.6g} factor={kind} "
            f"stamp={self.stamp}>"
        )

    @property
    def n(self):
        return self.K.shape[0]

    @property
    def Ks(self):
        """Scaled kernel matrix K * scale."""
        return self.K * self.scale

    @property
    def sW(self):
        return self.factor.sW

    @property
    def L(self):
        return self.factor.L

    @property
    def has_gradient_cache(self):
        return self.dfhat is not None

    def check_consistency(self, rtol=1e-8, atol=1e-10):
        """True if mu == K * scale * alpha + mean_f within tolerance."""
        f = gnp.matmul(self.Ks, self.alpha) + self.mean_f
        return bool(gnp.allclose(f, self.mu, rtol=rtol, atol=atol))
