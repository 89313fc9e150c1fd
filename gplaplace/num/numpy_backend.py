# gplaplace/num/numpy_backend.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""NumPy numerical backend for gplaplace.

This module defines the NumPy/SciPy implementation of the gplaplace.num API.
"""

from typing import Any, Callable, Tuple, Union
from gplaplace.config import get_config, init_backend, get_logger

Scalar = Union[int, float]
ArrayLike = Any

_gplaplace_backend_: str = init_backend()
_config = get_config()
_logger = get_logger()
_logger.debug("Using backend: %s", _gplaplace_backend_)


# -----------------------------------------------------
#
#                      NUMPY
#
# -----------------------------------------------------

import numpy
from numpy.typing import NDArray

_np_dtype = numpy.float64
_config.dtype_resolved = _np_dtype

ndarray = NDArray[numpy.floating]
from numpy import (
    copy,
    reshape,
    where,
    any,
    isfinite,
    allclose,
    concatenate,
    zeros_like,
    ones_like,
    diag,
    arange,
    abs,
    sign,
    sqrt,
    exp,
    log,
    log1p,
    sum,
    prod,
    min,
    max,
    minimum,
    maximum,
    outer,
    dot,
    matmul,
    all,
)
from numpy import pi, inf
from numpy import finfo, float64
from scipy.special import gammaln, digamma, expit, log_expit, log_ndtr
from scipy.linalg import solve_triangular, lu_factor, lu_solve
from scipy.optimize import minimize, minimize_scalar
from scipy.spatial.distance import cdist

LinAlgError = numpy.linalg.LinAlgError

# ..................................................

eps = finfo(_np_dtype).eps
fmax = numpy.finfo(_np_dtype).max

# ..................................................

def array(x, dtype=None):
    if dtype is not None:
        return numpy.array(x, dtype=dtype)
    out = numpy.array(x)
    if numpy.issubdtype(out.dtype, numpy.floating):
        return out.astype(_np_dtype, copy=False)
    return out

def asarray(x, dtype=None):
    if dtype is not None:
        return numpy.asarray(x, dtype=dtype)
    if isinstance(x, numpy.ndarray):
        if numpy.issubdtype(x.dtype, numpy.floating):
            return x.astype(_np_dtype, copy=False)
        return x
    elif isinstance(x, (int, float)):
        dt = _np_dtype if isinstance(x, float) else None
        return numpy.array([x], dtype=dt)
    else:
        out = numpy.asarray(x)
        if numpy.issubdtype(out.dtype, numpy.floating):
            return out.astype(_np_dtype, copy=False)
        return out

def zeros(shape, dtype=None):
    return numpy.zeros(shape, dtype=_np_dtype if dtype is None else dtype)

def ones(shape, dtype=None):
    return numpy.ones(shape, dtype=_np_dtype if dtype is None else dtype)

def full(shape, fill_value, dtype=None):
    return numpy.full(
        shape, fill_value, dtype=_np_dtype if dtype is None else dtype
    )

def eye(n, m=None, k=0, dtype=None):
    return numpy.eye(n, M=m, k=k, dtype=_np_dtype if dtype is None else dtype)

def linspace(start, stop, num=50, endpoint=True, dtype=None):
    return numpy.linspace(
        start, stop, num=num, endpoint=endpoint,
        dtype=_np_dtype if dtype is None else dtype,
    )

def inftobigf(a, bigf=fmax / 1000.0):
    a = where(numpy.isinf(a), numpy.full_like(a, bigf), a)
    return a

def tobytes(x):
    """Raw bytes of x as a contiguous float64 array (used for hashing)."""
    return numpy.ascontiguousarray(numpy.asarray(x, dtype=_np_dtype)).tobytes()

# ..................................................

def scaled_distance(loginvrho: ArrayLike, x: ArrayLike, y: ArrayLike) -> ArrayLike:
    invrho = exp(loginvrho)
    xs = invrho * x
    ys = invrho * y
    return cdist(xs, ys)

def scaled_differences_sqrd(
    loginvrho: ArrayLike, x: ArrayLike, y: ArrayLike, j: int
) -> ArrayLike:
    """Return (invrho_j * (x_j - y_j))^2 for all pairs, shape (nx, ny)."""
    invrho = exp(loginvrho)
    d = invrho[j] * (x[:, j][:, None] - y[:, j][None, :])
    return d * d

# ..................................................

def cholesky(A, lower=True):
    """Cholesky factor of A. Raises numpy.linalg.LinAlgError on failure."""
    C = numpy.linalg.cholesky(A)
    return C if lower else C.T

# ..................................................

def minimize_scalar_bounded(
    f: Callable[[float], float], lower: float, upper: float, xatol: float
) -> Tuple[float, float]:
    """Bounded Brent minimization of a scalar function on [lower, upper].

    Returns
    -------
    (x, fx) : tuple of floats
        Minimizer and minimum value found.
    """
    r = minimize_scalar(
        f, bounds=(lower, upper), method="bounded", options={"xatol": xatol}
    )
    return float(r.x), float(r.fun)
