# gplaplace/likelihood/logit.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
import gplaplace.num as gnp
from .base import BinaryLikelihood


class LogitLikelihood(BinaryLikelihood):
    """Logistic likelihood p(y | f) = 1 / (1 + exp(-y f)), y in {-1, +1}.

    Log-concave, so W = -d2lp is always positive.
    """

    model_type = "logit"

    def __repr__(self):
        return "LogitLikelihood()"

    def _log_probability(self, y, f):
        return gnp.log_expit(y * f)

    def _dlp(self, y, f, order):
        p = gnp.expit(y * f)
        q = gnp.expit(-y * f)
        if order == 1:
            return y * q
        if order == 2:
            return -p * q
        return -y * p * q * (q - p)
