# gplaplace/core/utils.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Small utilities used across `gplaplace.core` modules.

This file hosts:
- The exception and warning classes raised by the inference engine
- Collaborator and dimension validation run before any factorization
- A finiteness guard for factorization results
"""
import gplaplace.num as gnp


class ConfigurationError(ValueError):
    """Invalid configuration: missing collaborator, dimension mismatch,
    unknown hyperparameter handle or unsupported minimizer."""


class FactorizationError(gnp.LinAlgError):
    """A Cholesky or LU factorization failed or produced non-finite values."""


class UnsupportedCapabilityError(RuntimeError):
    """A required numerical capability is not available."""


class ConvergenceWarning(RuntimeWarning):
    """Mode finding stopped at the iteration cap before meeting the tolerance."""


def check_collaborators(kernel, mean, likelihood, labels):
    """Raise ConfigurationError if one of the collaborators is missing.

    Parameters
    ----------
    kernel : KernelProvider or None
    mean : MeanProvider or None
    likelihood : LikelihoodModel or None
    labels : array_like or None
    """
    missing = [
        name
        for name, obj in (
            ("kernel", kernel),
            ("mean", mean),
            ("likelihood", likelihood),
            ("labels", labels),
        )
        if obj is None
    ]
    if missing:
        raise ConfigurationError(
            "Inference is missing required collaborator(s): " + ", ".join(missing)
        )


def check_dimensions(K, mean_f, labels):
    """Validate the shapes of the kernel matrix, the mean vector and the labels.

    Parameters
    ----------
    K : array_like, shape (n, n)
    mean_f : array_like, shape (n,)
    labels : array_like, shape (n,)

    Raises
    ------
    ConfigurationError
        If K is empty or not square, or if mean_f or labels do not have n
        entries.
    """
    if K.ndim != 2 or K.shape[0] != K.shape[1]:
        raise ConfigurationError(f"Kernel matrix must be square, got shape {K.shape}")
    n = K.shape[0]
    if n == 0:
        raise ConfigurationError("At least one training point is required")
    if mean_f.ndim != 1 or mean_f.shape[0] != n:
        raise ConfigurationError(
            f"Mean vector has shape {mean_f.shape}, expected ({n},)"
        )
    if labels.ndim != 1 or labels.shape[0] != n:
        raise ConfigurationError(
            f"Number of labels ({labels.shape[0] if labels.ndim else 0}) does not "
            f"match kernel matrix size ({n})"
        )


def check_finite(name, x):
    """Raise FactorizationError if x contains NaN or Inf values."""
    if not gnp.all(gnp.isfinite(x)):
        raise FactorizationError(f"{name} contains non-finite values")
    return x
