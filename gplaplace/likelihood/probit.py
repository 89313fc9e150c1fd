# gplaplace/likelihood/probit.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
import gplaplace.num as gnp
from .base import BinaryLikelihood


class ProbitLikelihood(BinaryLikelihood):
    """Probit likelihood p(y | f) = Phi(y f), y in {-1, +1}.

    The ratio N(z) / Phi(z) is evaluated in log space with log_ndtr so that
    it stays finite for large negative z.
    """

    model_type = "probit"

    def __repr__(self):
        return "ProbitLikelihood()"

    def _log_probability(self, y, f):
        return gnp.log_ndtr(y * f)

    def _dlp(self, y, f, order):
        z = y * f
        log_pdf = -0.5 * z * z - 0.5 * gnp.log(2.0 * gnp.pi)
        r = gnp.exp(log_pdf - gnp.log_ndtr(z))
        if order == 1:
            return y * r
        # dr/dz = -r (z + r)
        if order == 2:
            return -r * (z + r)
        return y * (r * (z + r) * (z + 2.0 * r) - r)
