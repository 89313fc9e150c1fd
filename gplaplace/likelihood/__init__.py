# gplaplace/likelihood/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Likelihood models for the Laplace approximation.

Public API
-----------
LikelihoodModel
    Base class.
LogitLikelihood, ProbitLikelihood
    Binary classification, labels in {-1, +1}.
GaussianLikelihood
    Gaussian noise (log_sigma).
StudentsTLikelihood
    Heavy-tailed regression noise (log_sigma, log_df).
"""

from .base import LikelihoodModel
from .logit import LogitLikelihood
from .probit import ProbitLikelihood
from .gaussian import GaussianLikelihood
from .studentst import StudentsTLikelihood

__all__ = [
    "LikelihoodModel",
    "LogitLikelihood",
    "ProbitLikelihood",
    "GaussianLikelihood",
    "StudentsTLikelihood",
]
