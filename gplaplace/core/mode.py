# gplaplace/core/mode.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Mode finding for the Laplace approximation.

The mode of p(f | y) is searched in the dual coordinates alpha, with
f = K s alpha + m, by minimizing

    Psi(alpha) = alpha'(f - m) / 2 - sum(log p(y | f)).

Two minimizers implement the `Minimizer` interface:

- `NewtonMinimizer`: Newton direction followed by a bounded Brent line
  search on the step length (Rasmussen & Williams, Algorithm 3.1, with
  the line search of GPML's infLaplace).
- `FirstOrderMinimizer`: any gradient-based method of
  scipy.optimize.minimize, driven by a `PsiCostFunction`.

Both receive a `ModeProblem` for the duration of one call and do not
keep a reference to it afterwards.
"""
import time
import warnings
import gplaplace.num as gnp
from gplaplace.config import get_config, get_logger
from . import linalg
from .posterior import curvature_cholesky
from .utils import ConfigurationError, ConvergenceWarning, UnsupportedCapabilityError

_logger = get_logger()


def psi(alpha, Ks, mean_f, likelihood, labels):
    """Evaluate Psi at alpha.

    Parameters
    ----------
    alpha : ndarray, shape (n,)
    Ks : ndarray, shape (n, n)
        Scaled kernel matrix.
    mean_f : ndarray, shape (n,)
    likelihood : LikelihoodModel
    labels : ndarray, shape (n,)

    Returns
    -------
    (psi, f) : (float, ndarray)
    """
    f = gnp.matmul(Ks, alpha) + mean_f
    value = gnp.dot(alpha, f - mean_f) / 2.0 - gnp.sum(
        likelihood.log_probability(labels, f)
    )
    return float(value), f


class ModeProblem:
    """Mutable working state of one mode search.

    Created by the inference engine at each update and lent to a
    minimizer. `alpha` is updated in place so that a minimizer can hold a
    reference to it as its optimization variable.

    Parameters
    ----------
    K : ndarray, shape (n, n)
        Unscaled kernel matrix.
    scale : float
        Kernel scale exp(2 * log_scale).
    mean_f : ndarray, shape (n,)
    likelihood : LikelihoodModel
    labels : ndarray, shape (n,)
    """

    def __init__(self, K, scale, mean_f, likelihood, labels):
        self.K = K
        self.scale = scale
        self.Ks = K * scale
        self.mean_f = mean_f
        self.likelihood = likelihood
        self.labels = labels
        self.alpha = None
        self.mu = None
        self.psi = None

    def initialize(self, alpha0=None):
        """Warm start from alpha0 unless the zero vector scores better.

        If alpha0 is None or its length does not match the number of
        labels, alpha = 0 and f = m.
        """
        n = self.labels.shape[0]
        psi_def = -float(
            gnp.sum(self.likelihood.log_probability(self.labels, self.mean_f))
        )
        if alpha0 is None or alpha0.shape[0] != n:
            self._set_default(psi_def)
            return self.psi

        alpha = gnp.copy(alpha0)
        psi_new, f = psi(alpha, self.Ks, self.mean_f, self.likelihood, self.labels)
        if psi_def < psi_new:
            _logger.debug("warm start rejected (Psi=%g > %g)", psi_new, psi_def)
            self._set_default(psi_def)
        else:
            self.alpha, self.mu, self.psi = alpha, f, psi_new
        return self.psi

    def _set_default(self, psi_def):
        n = self.labels.shape[0]
        self.alpha = gnp.zeros(n)
        self.mu = gnp.copy(self.mean_f)
        self.psi = psi_def

    def evaluate(self, alpha):
        """Psi and f at alpha, without touching the stored state."""
        return psi(alpha, self.Ks, self.mean_f, self.likelihood, self.labels)

    def set_alpha(self, alpha):
        """Move to alpha (in place) and recompute f and Psi."""
        self.alpha[:] = alpha
        self.psi, self.mu = self.evaluate(self.alpha)
        return self.psi

    def get_psi_wrt_alpha(self):
        """Psi at the current alpha, recomputing f first."""
        self.psi, self.mu = self.evaluate(self.alpha)
        return self.psi

    def get_gradient_wrt_alpha(self, gradient):
        """Write dPsi/dalpha = K s (alpha - dlp(f)) into gradient."""
        if gradient.shape[0] != self.alpha.shape[0]:
            raise ConfigurationError(
                f"The length of gradients ({gradient.shape[0]}) should be the same "
                f"as the length of parameters ({self.alpha.shape[0]})"
            )
        f = gnp.matmul(self.Ks, self.alpha) + self.mean_f
        dlp = self.likelihood.log_probability_derivative(self.labels, f, 1)
        gradient[:] = gnp.matmul(self.Ks, self.alpha - dlp)
        return gradient


class PsiCostFunction:
    """First-order cost function view of a `ModeProblem`."""

    def __init__(self, problem):
        self._problem = problem
        self._derivatives = gnp.zeros(problem.alpha.shape[0])

    def get_cost(self):
        return self._problem.get_psi_wrt_alpha()

    def get_gradient(self):
        return gnp.copy(self._problem.get_gradient_wrt_alpha(self._derivatives))

    def obtain_variable_reference(self):
        return self._problem.alpha


class Minimizer:
    """Capability interface of the mode finders."""

    def minimize(self, problem):
        """Minimize Psi over problem.alpha; return the final Psi."""
        raise NotImplementedError


def _degrees_of_freedom(likelihood):
    if getattr(likelihood, "model_type", None) == "studentst":
        return float(likelihood.degrees_of_freedom())
    return 1.0


class NewtonMinimizer(Minimizer):
    """Newton iterations with a bounded line search on the step length.

    Parameters
    ----------
    max_iter : int, optional
        Maximum number of Newton iterations (config default 20).
    tolerance : float, optional
        Stop when the decrease of Psi is not above this value (default 1e-6).
    opt_tolerance : float, optional
        Absolute tolerance on the step length of the line search (default 1e-6).
    opt_max : float, optional
        Upper bound of the step length (default 10).
    line_search : callable or None, optional
        line_search(func, lower, upper, xatol) -> (x, func(x)). Defaults to
        the bounded Brent method of the numerical backend. If None, the
        minimizer cannot run and raises UnsupportedCapabilityError.
    """

    def __init__(
        self,
        max_iter=None,
        tolerance=None,
        opt_tolerance=None,
        opt_max=None,
        line_search=gnp.minimize_scalar_bounded,
    ):
        config = get_config()
        self.max_iter = config.newton_max_iter if max_iter is None else int(max_iter)
        self.tolerance = config.newton_tolerance if tolerance is None else tolerance
        self.opt_tolerance = (
            config.line_search_tolerance if opt_tolerance is None else opt_tolerance
        )
        self.opt_max = config.line_search_max if opt_max is None else opt_max
        self.line_search = line_search
        self.n_iter = 0
        self.converged = None

    def __repr__(self):
        return (
            f"NewtonMinimizer(max_iter={self.max_iter}, tolerance={self.tolerance}, "
            f"opt_tolerance={self.opt_tolerance}, opt_max={self.opt_max})"
        )

    def minimize(self, problem):
        if not callable(self.line_search):
            raise UnsupportedCapabilityError(
                "NewtonMinimizer requires a bounded 1-D line search, "
                "but none is available"
            )
        lik, labels = problem.likelihood, problem.labels
        Ks, mean_f = problem.Ks, problem.mean_f

        psi_old = gnp.inf
        psi_new = problem.psi
        it = 0
        while psi_old - psi_new > self.tolerance and it < self.max_iter:
            psi_old = psi_new
            it += 1

            f = problem.mu
            dlp = lik.log_probability_derivative(labels, f, 1)
            W = -lik.log_probability_derivative(labels, f, 2)
            if gnp.min(W) < 0.0:
                # Vanhatalo et al., GP regression with Student-t likelihood, NIPS 2009
                df = _degrees_of_freedom(lik)
                W = W + (2.0 / df) * dlp * dlp
            sW = gnp.sqrt(W)
            U = curvature_cholesky(Ks, sW)

            b = W * (f - mean_f) + dlp
            v = linalg.cholesky_solve_upper(U, sW * gnp.matmul(Ks, b))
            start_alpha = gnp.copy(problem.alpha)
            dalpha = b - sW * v - start_alpha

            def line(x):
                return problem.evaluate(start_alpha + x * dalpha)[0]

            x, psi_x = self.line_search(line, 0.0, self.opt_max, self.opt_tolerance)
            if psi_x < psi_old:
                psi_new = problem.set_alpha(start_alpha + x * dalpha)
            _logger.debug("newton iter %d: Psi=%.10g step=%.6g", it, psi_new, x)

        self.n_iter = it
        self.converged = not (psi_old - psi_new > self.tolerance)
        if not self.converged:
            msg = (
                f"Max iterations ({self.max_iter}) reached, but convergence level "
                f"({psi_old - psi_new:g}) is not yet below tolerance ({self.tolerance:g})"
            )
            _logger.warning(msg)
            warnings.warn(msg, ConvergenceWarning)
        return psi_new


class FirstOrderMinimizer(Minimizer):
    """Generic gradient-based mode finder using scipy.optimize.minimize.

    Parameters
    ----------
    method : {"L-BFGS-B", "BFGS", "CG"}, default "L-BFGS-B"
    max_iter : int, default 1000
    gtol : float, default 1e-10
    ftol : float, default 1e-15
        Only used by L-BFGS-B.
    options : dict, optional
        Extra options passed to scipy.optimize.minimize.
    """

    METHODS = ("L-BFGS-B", "BFGS", "CG")

    def __init__(self, method="L-BFGS-B", max_iter=1000, gtol=1e-10, ftol=1e-15, options=None):
        if method not in self.METHODS:
            raise ConfigurationError(
                f"Optimization method {method!r} not supported; use one of {self.METHODS}"
            )
        self.method = method
        self.max_iter = max_iter
        self.gtol = gtol
        self.ftol = ftol
        self.options = {} if options is None else dict(options)
        self.result = None

    def __repr__(self):
        return f"FirstOrderMinimizer(method={self.method!r}, max_iter={self.max_iter})"

    def _scipy_options(self):
        options = dict(maxiter=self.max_iter, gtol=self.gtol)
        if self.method == "L-BFGS-B":
            options.update(ftol=self.ftol, maxfun=15000)
        options.update(self.options)
        return options

    def minimize(self, problem):
        tic = time.time()
        cost = PsiCostFunction(problem)
        alpha = cost.obtain_variable_reference()

        def fun(a):
            alpha[:] = a
            return cost.get_cost()

        def jac(a):
            alpha[:] = a
            return cost.get_gradient()

        r = gnp.minimize(
            fun, gnp.copy(alpha), jac=jac, method=self.method, options=self._scipy_options()
        )
        psi_final = problem.set_alpha(r.x)
        r.total_time = time.time() - tic
        self.result = r
        if not r.success:
            msg = f"First-order mode search did not converge: {r.message}"
            _logger.warning(msg)
            warnings.warn(msg, ConvergenceWarning)
        _logger.debug(
            "first-order mode search: Psi=%.10g nit=%d time=%.3fs",
            psi_final, r.nit, r.total_time,
        )
        return psi_final
