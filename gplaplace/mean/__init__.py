# gplaplace/mean/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Prior mean providers: ZeroMean, ConstantMean, LinearMean.
"""

from .base import MeanProvider, ZeroMean, ConstantMean
from .linear import LinearMean

__all__ = ["MeanProvider", "ZeroMean", "ConstantMean", "LinearMean"]
