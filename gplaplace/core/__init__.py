# gplaplace/core/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------

"""
Core components of the gplaplace package.

This subpackage contains the numerical routines of the Laplace
approximation: mode finding, factorization of the curvature matrix,
negative log marginal likelihood and its gradients, and the supporting
linear algebra utilities.

Public API
----------
SingleLaplaceInference : class
    Inference façade combining all core routines.
NewtonMinimizer, FirstOrderMinimizer : class
    Mode finders.
"""

from .inference import SingleLaplaceInference
from .mode import NewtonMinimizer, FirstOrderMinimizer, ModeProblem, PsiCostFunction
from .state import LaplaceState
from .utils import (
    ConfigurationError,
    FactorizationError,
    UnsupportedCapabilityError,
    ConvergenceWarning,
)

__all__ = [
    "SingleLaplaceInference",
    "NewtonMinimizer",
    "FirstOrderMinimizer",
    "ModeProblem",
    "PsiCostFunction",
    "LaplaceState",
    "ConfigurationError",
    "FactorizationError",
    "UnsupportedCapabilityError",
    "ConvergenceWarning",
]
