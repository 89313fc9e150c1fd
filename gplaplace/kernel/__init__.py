# gplaplace/kernel/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Kernel providers for the Laplace inference engine.

Modules
-------
base
    KernelProvider interface and PrecomputedKernel.
exponential
    Exponential kernel.
matern
    Matérn family of kernels with half-integer regularity.

Public API
-----------
- Kernel functions:
    exponential_kernel, matern32_kernel, maternp_kernel
- Providers:
    KernelProvider, MaternKernel, PrecomputedKernel
"""

from .base import KernelProvider, PrecomputedKernel
from .exponential import exponential_kernel
from .matern import matern32_kernel, maternp_kernel, MaternKernel

__all__ = [
    "KernelProvider",
    "PrecomputedKernel",
    "MaternKernel",
    "exponential_kernel",
    "matern32_kernel",
    "maternp_kernel",
]
