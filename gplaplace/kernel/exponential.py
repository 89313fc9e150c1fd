# gplaplace/kernel/exponential.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
import gplaplace.num as gnp


def exponential_kernel(h):
    """Exponential kernel.

    .. math::
        k(h) = \\exp(-h)

    Parameters
    ----------
    h : gnp.array
        Distances between points.

    Returns
    -------
    gnp.array
        Kernel values, same shape as h.
    """
    return gnp.exp(-h)


def exponential_kernel_derivative(h):
    """Derivative of `exponential_kernel` with respect to h."""
    return -gnp.exp(-h)
