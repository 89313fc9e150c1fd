# gplaplace/core/inference.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Single-output Laplace inference class.
"""
import hashlib
import gplaplace.num as gnp
from gplaplace.config import get_logger
from gplaplace.misc.param import Hyperparameter, ParamSet

from . import mode
from . import posterior
from . import marginal
from . import gradients
from . import utils
from .state import LaplaceState

_logger = get_logger()


class SingleLaplaceInference:
    """Laplace approximation to the posterior of a GP with a non-Gaussian
    likelihood.

    The latent values f at the training inputs have prior
    N(m, s K), where K is the kernel matrix, m the mean vector and
    s = exp(2 * log_scale). Given labels y and a likelihood p(y | f),
    the engine finds the mode of p(f | y), builds a Gaussian
    approximation around it and exposes the negative log marginal
    likelihood with its derivatives.

    Attributes
    ----------
    kernel : KernelProvider
        Provides the kernel matrix K over `features` and its derivatives
        ``kernel.get_parameter_gradient(param[, index])``.
    features : array_like, shape (n, d)
        Training inputs.
    mean : MeanProvider
        Provides ``mean.get_mean_vector(features)`` and
        ``mean.get_parameter_derivative(features, param[, index])``.
    labels : array_like, shape (n,)
        Observations.
    likelihood : LikelihoodModel
        Log-probability of the labels and its derivatives.
    log_scale : float
        Logarithm of the kernel scale (standard deviation).
    minimizer : NewtonMinimizer or FirstOrderMinimizer
        Mode finder.

    Public API (methods)
    --------------------
    update
        Mode finding and factorization; run implicitly by all getters
        when the configuration changed.
    get_negative_log_marginal_likelihood
        nlZ at the current hyperparameters.
    get_posterior_mean, get_mode, get_alpha, get_psi
        Quantities at the mode.
    get_diagonal_vector, get_cholesky, get_posterior_covariance
        Factorization and Gaussian approximation.
    get_derivative_wrt_inference_method, get_derivative_wrt_kernel,
    get_derivative_wrt_mean, get_derivative_wrt_likelihood_model
        Gradient of nlZ, one target family at a time.
    get_negative_log_marginal_likelihood_derivatives
        Gradient of nlZ for every registered hyperparameter.

    Examples
    --------
    >>> import gplaplace as gl
    >>> import gplaplace.num as gnp
    >>> x = gnp.linspace(0.0, 1.0, 5).reshape(-1, 1)
    >>> y = gnp.array([1.0, 1.0, -1.0, -1.0, 1.0])
    >>> inf = gl.SingleLaplaceInference(
    ...     gl.kernel.MaternKernel(p=1, loginvrho=[1.0]), x,
    ...     gl.mean.ZeroMean(), y, gl.likelihood.LogitLikelihood())
    >>> nlz = inf.get_negative_log_marginal_likelihood()
    """

    def __init__(
        self,
        kernel=None,
        features=None,
        mean=None,
        labels=None,
        likelihood=None,
        log_scale=0.0,
        minimizer=None,
    ):
        self.kernel = kernel
        self.features = None if features is None else gnp.asarray(features)
        self.mean = mean
        self.labels = None if labels is None else gnp.asarray(labels).reshape(-1)
        self.likelihood = likelihood
        self.params = ParamSet(owner=self, log_scale=[log_scale])
        self.minimizer = None
        self.register_minimizer(
            mode.NewtonMinimizer() if minimizer is None else minimizer
        )
        self._state = None
        self._alpha = None

    def __repr__(self):
        output = str("<gplaplace.core.SingleLaplaceInference object> " + hex(id(self)))
        return output

    def __str__(self):
        n = None if self.labels is None else self.labels.shape[0]
        return (
            f"Single Laplace inference:\n"
            f"  Kernel: {self.kernel!r}\n"
            f"  Mean: {self.mean!r}\n"
            f"  Likelihood: {self.likelihood!r}\n"
            f"  Number of labels: {n}\n"
            f"  log_scale: {self.log_scale}\n"
            f"  Minimizer: {self.minimizer!r}"
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def log_scale(self):
        return float(self.params.get("log_scale")[0])

    @property
    def scale(self):
        return float(gnp.exp(2.0 * self.log_scale))

    def set_log_scale(self, log_scale):
        self.params.set("log_scale", [log_scale])

    def set_scale(self, scale):
        """Set the kernel scale as a standard deviation (log_scale = log(scale))."""
        if scale <= 0.0:
            raise utils.ConfigurationError("Scale must be positive")
        self.set_log_scale(float(gnp.log(scale)))

    def set_kernel(self, kernel):
        self.kernel = kernel

    def set_features(self, features):
        self.features = gnp.asarray(features)

    def set_mean(self, mean):
        self.mean = mean

    def set_labels(self, labels):
        self.labels = gnp.asarray(labels).reshape(-1)

    def set_likelihood(self, likelihood):
        self.likelihood = likelihood

    def register_minimizer(self, minimizer):
        """Select the mode finder.

        Raises
        ------
        ConfigurationError
            If minimizer is neither a NewtonMinimizer nor a FirstOrderMinimizer.
        """
        if not isinstance(minimizer, (mode.NewtonMinimizer, mode.FirstOrderMinimizer)):
            raise utils.ConfigurationError(
                f"The provided minimizer is not supported: {minimizer!r}"
            )
        self.minimizer = minimizer
        self._state = None

    def get_inference_hyperparameters(self):
        """Handles of the engine's own hyperparameters (log_scale)."""
        return self.params.handles()

    # ------------------------------------------------------------------
    # Staleness
    # ------------------------------------------------------------------
    def parameter_hash(self):
        """Hash of everything the cached state depends on."""
        h = hashlib.sha1()
        h.update(gnp.tobytes(self.params.values_vector()))
        for obj in (self.kernel, self.mean, self.likelihood):
            h.update(type(obj).__name__.encode())
            h.update(str(id(obj)).encode())
            params = getattr(obj, "params", None)
            if params is not None:
                h.update(gnp.tobytes(params.values_vector()))
            config_bytes = getattr(obj, "config_bytes", None)
            if config_bytes is not None:
                h.update(config_bytes())
        for arr in (self.features, self.labels):
            if arr is not None:
                h.update(str(arr.shape).encode())
                h.update(gnp.tobytes(arr))
        h.update(str(id(self.minimizer)).encode())
        return h.hexdigest()

    def parameter_hash_changed(self):
        return self._state is None or self._state.stamp != self.parameter_hash()

    def _current_state(self):
        if self.parameter_hash_changed():
            self.update()
        return self._state

    # ------------------------------------------------------------------
    # Update cycle
    # ------------------------------------------------------------------
    def _compute_prior(self):
        utils.check_collaborators(self.kernel, self.mean, self.likelihood, self.labels)
        if self.features is None:
            raise utils.ConfigurationError("Inference is missing training features")
        self.kernel.init(self.features)
        K = gnp.asarray(self.kernel.get_kernel_matrix())
        mean_f = gnp.asarray(self.mean.get_mean_vector(self.features)).reshape(-1)
        utils.check_dimensions(K, mean_f, self.labels)
        return K, mean_f

    def _mode_problem(self, K, mean_f):
        return mode.ModeProblem(K, self.scale, mean_f, self.likelihood, self.labels)

    def update(self):
        """Find the posterior mode and factorize the curvature matrix.

        The previous alpha is used as a warm start. The new state is
        published only when every step succeeded; on failure, the
        previous state is discarded.

        Raises
        ------
        ConfigurationError
            Missing collaborator or inconsistent dimensions.
        FactorizationError
            Cholesky or LU factorization failed.
        UnsupportedCapabilityError
            Newton minimizer without a line search.
        """
        _logger.debug("entering update")
        stamp = self.parameter_hash()
        self._state = None

        K, mean_f = self._compute_prior()
        problem = self._mode_problem(K, mean_f)
        problem.initialize(self._alpha)
        self.minimizer.minimize(problem)
        # f = K s alpha + m at the returned alpha
        psi_final = problem.set_alpha(problem.alpha)

        state = LaplaceState(
            K, problem.scale, mean_f, problem.alpha, problem.mu, psi_final, stamp
        )
        lik, labels = self.likelihood, self.labels
        state.dlp = lik.log_probability_derivative(labels, state.mu, 1)
        state.d2lp = lik.log_probability_derivative(labels, state.mu, 2)
        state.d3lp = lik.log_probability_derivative(labels, state.mu, 3)
        state.W = -state.d2lp
        state.factor = posterior.factorize(K, state.scale, state.W)

        self._alpha = gnp.copy(state.alpha)
        self._state = state
        _logger.debug("leaving update: Psi=%.10g, factor=%s", state.psi, state.factor.kind)

    def get_state(self):
        """Current `LaplaceState` (updated if stale)."""
        return self._current_state()

    # ------------------------------------------------------------------
    # Psi as a function of alpha
    # ------------------------------------------------------------------
    def get_psi_wrt_alpha(self, alpha=None):
        """Psi at alpha (default: the current alpha), with f recomputed."""
        K, mean_f = self._compute_prior()
        problem = self._mode_problem(K, mean_f)
        problem.alpha = self.get_alpha() if alpha is None else gnp.copy(gnp.asarray(alpha))
        utils.check_dimensions(K, problem.alpha, self.labels)
        return problem.get_psi_wrt_alpha()

    def get_gradient_wrt_alpha(self, gradient, alpha=None):
        """Write dPsi/dalpha = K s (alpha - dlp(f)) into gradient and return it."""
        K, mean_f = self._compute_prior()
        problem = self._mode_problem(K, mean_f)
        problem.alpha = self.get_alpha() if alpha is None else gnp.copy(gnp.asarray(alpha))
        utils.check_dimensions(K, problem.alpha, self.labels)
        return problem.get_gradient_wrt_alpha(gradient)

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------
    def get_negative_log_marginal_likelihood(self):
        """Negative log marginal likelihood nlZ of the Laplace approximation."""
        state = self._current_state()
        return marginal.negative_log_marginal_likelihood(
            state, self.likelihood, self.labels
        )

    def get_posterior_mean(self):
        """Mode minus prior mean, f - m."""
        state = self._current_state()
        return state.mu - state.mean_f

    def get_mode(self):
        """Posterior mode f at the training inputs."""
        return gnp.copy(self._current_state().mu)

    def get_alpha(self):
        return gnp.copy(self._current_state().alpha)

    def get_psi(self):
        return self._current_state().psi

    def get_diagonal_vector(self):
        """sW, the signed square root of W at the mode."""
        return gnp.copy(self._current_state().sW)

    def get_cholesky(self):
        """Posterior factor L (upper Cholesky factor or -diag(W) A⁻¹)."""
        return gnp.copy(self._current_state().L)

    def get_factorization_kind(self):
        return self._current_state().factor.kind

    def get_posterior_covariance(self):
        """Covariance (K⁻¹ + W)⁻¹ of the Gaussian approximation."""
        state = self._current_state()
        return posterior.posterior_covariance(state.K, state.scale, state.factor, state.W)

    # ------------------------------------------------------------------
    # Derivatives of nlZ
    # ------------------------------------------------------------------
    def _gradient_state(self):
        state = self._current_state()
        if not state.has_gradient_cache:
            gradients.precompute(state)
        return state

    def _require(self, params, param, family):
        if not isinstance(param, Hyperparameter) or params is None or not params.recognizes(param):
            raise utils.ConfigurationError(
                f"Can't compute derivative of the negative log marginal likelihood "
                f"wrt {family} parameter {param!r}"
            )

    def get_derivative_wrt_inference_method(self, param):
        """Derivative of nlZ with respect to log_scale."""
        self._require(self.params, param, "inference method")
        return gradients.derivative_wrt_scale(self._gradient_state())

    def get_derivative_wrt_kernel(self, param):
        """Derivative of nlZ with respect to each element of a kernel hyperparameter."""
        self._require(getattr(self.kernel, "params", None), param, "kernel")
        state = self._gradient_state()
        return gradients.derivative_wrt_kernel(state, self.kernel, self.features, param)

    def get_derivative_wrt_mean(self, param):
        """Derivative of nlZ with respect to each element of a mean hyperparameter."""
        self._require(getattr(self.mean, "params", None), param, "mean")
        state = self._gradient_state()
        return gradients.derivative_wrt_mean(state, self.mean, self.features, param)

    def get_derivative_wrt_likelihood_model(self, param):
        """Derivative of nlZ with respect to a likelihood hyperparameter."""
        self._require(getattr(self.likelihood, "params", None), param, "likelihood")
        state = self._gradient_state()
        return gradients.derivative_wrt_likelihood(
            state, self.likelihood, self.labels, param
        )

    def get_negative_log_marginal_likelihood_derivatives(self):
        """Gradient of nlZ for every hyperparameter of the engine and its collaborators.

        Returns
        -------
        dict
            Maps each `Hyperparameter` handle to an array of derivatives.
        """
        result = {}
        for param in self.params.handles():
            result[param] = self.get_derivative_wrt_inference_method(param)
        for owner, getter in (
            (self.kernel, self.get_derivative_wrt_kernel),
            (self.mean, self.get_derivative_wrt_mean),
            (self.likelihood, self.get_derivative_wrt_likelihood_model),
        ):
            params = getattr(owner, "params", None)
            if params is None:
                continue
            for param in params.handles():
                result[param] = getter(param)
        return result
