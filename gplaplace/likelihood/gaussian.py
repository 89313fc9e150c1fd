# gplaplace/likelihood/gaussian.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
import gplaplace.num as gnp
from .base import LikelihoodModel


class GaussianLikelihood(LikelihoodModel):
    """Gaussian likelihood y | f ~ N(f, sigma^2).

    Parameters
    ----------
    log_sigma : float
        Hyperparameter ``log_sigma``, log of the noise standard deviation.
    """

    model_type = "gaussian"

    def __init__(self, log_sigma=0.0):
        super().__init__(log_sigma=[log_sigma])

    def __repr__(self):
        return f"GaussianLikelihood(log_sigma={self.params.get('log_sigma')[0]})"

    @property
    def sigma2(self):
        return float(gnp.exp(2.0 * self.params.get("log_sigma")[0]))

    def _log_probability(self, y, f):
        s2 = self.sigma2
        r = y - f
        return -0.5 * r * r / s2 - 0.5 * gnp.log(2.0 * gnp.pi * s2)

    def _dlp(self, y, f, order):
        s2 = self.sigma2
        if order == 1:
            return (y - f) / s2
        if order == 2:
            return gnp.full(f.shape[0], -1.0 / s2)
        return gnp.zeros(f.shape[0])

    def _hyper_derivative(self, y, f, name, order):
        s2 = self.sigma2
        r = y - f
        if order == 0:
            return r * r / s2 - 1.0
        if order == 1:
            return -2.0 * r / s2
        return gnp.full(f.shape[0], 2.0 / s2)
