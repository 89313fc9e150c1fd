# gplaplace/misc/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Miscellaneous utility modules for gplaplace.

param
    Hyperparameter handles and named parameter storage.
plotutils
    Matplotlib figure helpers (imported on demand).
"""

from . import param
