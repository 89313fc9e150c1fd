# gplaplace/likelihood/studentst.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
import gplaplace.num as gnp
from .base import LikelihoodModel


class StudentsTLikelihood(LikelihoodModel):
    """Student's-t likelihood with location f, scale sigma and nu degrees
    of freedom.

    .. math::
        \\log p(y|f) = \\log\\Gamma(\\tfrac{\\nu+1}{2}) - \\log\\Gamma(\\tfrac{\\nu}{2})
            - \\tfrac12 \\log(\\nu\\pi\\sigma^2)
            - \\tfrac{\\nu+1}{2} \\log\\big(1 + \\tfrac{r^2}{\\nu\\sigma^2}\\big),
        \\quad r = y - f

    The likelihood is not log-concave: W = -d2lp is negative for
    |r| > sigma sqrt(nu), which sends the inference engine to its LU
    branch.

    Parameters
    ----------
    log_sigma : float
        Hyperparameter ``log_sigma``.
    log_df : float
        Hyperparameter ``log_df``, log of nu.
    """

    model_type = "studentst"

    def __init__(self, log_sigma=0.0, log_df=gnp.log(3.0)):
        super().__init__(log_sigma=[log_sigma], log_df=[log_df])

    def __repr__(self):
        return (
            f"StudentsTLikelihood(log_sigma={self.params.get('log_sigma')[0]}, "
            f"log_df={self.params.get('log_df')[0]})"
        )

    def degrees_of_freedom(self):
        return float(gnp.exp(self.params.get("log_df")[0]))

    def _terms(self, y, f):
        nu = self.degrees_of_freedom()
        s2 = float(gnp.exp(2.0 * self.params.get("log_sigma")[0]))
        r = y - f
        r2 = r * r
        a = nu * s2
        return nu, s2, r, r2, a, a + r2

    def _log_probability(self, y, f):
        nu, s2, r, r2, a, D = self._terms(y, f)
        return (
            gnp.gammaln((nu + 1.0) / 2.0)
            - gnp.gammaln(nu / 2.0)
            - 0.5 * gnp.log(nu * gnp.pi * s2)
            - (nu + 1.0) / 2.0 * gnp.log1p(r2 / a)
        )

    def _dlp(self, y, f, order):
        nu, s2, r, r2, a, D = self._terms(y, f)
        if order == 1:
            return (nu + 1.0) * r / D
        if order == 2:
            return (nu + 1.0) * (r2 - a) / (D * D)
        return (nu + 1.0) * 2.0 * r * (r2 - 3.0 * a) / D**3

    def _hyper_derivative(self, y, f, name, order):
        nu, s2, r, r2, a, D = self._terms(y, f)
        if name == "log_sigma":
            if order == 0:
                return (nu + 1.0) * r2 / D - 1.0
            if order == 1:
                return -2.0 * (nu + 1.0) * a * r / (D * D)
            return 2.0 * (nu + 1.0) * a * (a - 3.0 * r2) / D**3

        # log_df: chain rule with dnu / dlog_df = nu
        if order == 0:
            return (
                0.5 * nu * (gnp.digamma((nu + 1.0) / 2.0) - gnp.digamma(nu / 2.0))
                - 0.5
                - 0.5 * nu * gnp.log1p(r2 / a)
                + 0.5 * (nu + 1.0) * r2 / D
            )
        if order == 1:
            return r * (nu * r2 - a) / (D * D)
        return (nu * (r2 - a) * D - (nu + 1.0) * a * (3.0 * r2 - a)) / D**3
