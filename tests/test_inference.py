import math
import unittest
import warnings
import numpy as np
import gplaplace as gl
import gplaplace.num as gnp
from gplaplace.core import linalg
from gplaplace.misc.param import Hyperparameter


def exponential_matrix(x, rho=0.3, nugget=0.5):
    """Well-conditioned covariance matrix for fixed-kernel problems."""
    h = np.abs(x[:, 0][:, None] - x[:, 0][None, :])
    return nugget * np.eye(x.shape[0]) + (1.0 - nugget) * np.exp(-h / rho)


def classification_data(n=10):
    x = np.linspace(0.0, 1.0, n).reshape(-1, 1)
    y = np.where(np.sin(6.0 * x[:, 0]) > 0.0, 1.0, -1.0)
    y[3] = -y[3]
    return x, y


def outlier_data(n=10):
    x = np.linspace(0.0, 1.0, n).reshape(-1, 1)
    y = np.sin(3.0 * x[:, 0])
    y[4] += 4.0
    return x, y


def tight_newton():
    return gl.NewtonMinimizer(max_iter=200, tolerance=1e-13, opt_tolerance=1e-10)


class TestScenarios(unittest.TestCase):
    def test_three_points_identity_kernel(self):
        K = np.eye(3)
        x = np.zeros((3, 1))
        inf = gl.SingleLaplaceInference(
            gl.kernel.PrecomputedKernel(K),
            x,
            gl.mean.ZeroMean(),
            np.array([1.0, -1.0, 1.0]),
            gl.likelihood.LogitLikelihood(),
        )
        nlz = inf.get_negative_log_marginal_likelihood()
        self.assertTrue(np.isfinite(nlz))
        self.assertGreater(nlz, 0.0)
        self.assertEqual(inf.get_factorization_kind(), "cholesky")
        # independent points: f_i has the sign of y_i
        self.assertTrue(np.all(np.sign(inf.get_mode()) == np.array([1.0, -1.0, 1.0])))

    def test_label_length_mismatch(self):
        inf = gl.SingleLaplaceInference(
            gl.kernel.PrecomputedKernel(np.eye(3)),
            np.zeros((3, 1)),
            gl.mean.ZeroMean(),
            np.array([1.0, -1.0]),
            gl.likelihood.LogitLikelihood(),
        )
        with self.assertRaises(gl.ConfigurationError):
            inf.get_negative_log_marginal_likelihood()

    def test_empty_training_set(self):
        inf = gl.SingleLaplaceInference(
            gl.kernel.PrecomputedKernel(np.zeros((0, 0))),
            np.zeros((0, 1)),
            gl.mean.ZeroMean(),
            np.zeros(0),
            gl.likelihood.LogitLikelihood(),
        )
        with self.assertRaises(gl.ConfigurationError):
            inf.get_negative_log_marginal_likelihood()

    def test_missing_collaborator(self):
        x, y = classification_data()
        inf = gl.SingleLaplaceInference(
            gl.kernel.MaternKernel(p=1, loginvrho=[1.0]), x, gl.mean.ZeroMean(), y, None
        )
        with self.assertRaises(gl.ConfigurationError):
            inf.update()

    def test_unsupported_minimizer(self):
        x, y = classification_data()
        with self.assertRaises(gl.ConfigurationError):
            gl.SingleLaplaceInference(
                gl.kernel.MaternKernel(p=1, loginvrho=[1.0]),
                x,
                gl.mean.ZeroMean(),
                y,
                gl.likelihood.LogitLikelihood(),
                minimizer="newton",
            )
        inf = gl.SingleLaplaceInference(
            gl.kernel.MaternKernel(p=1, loginvrho=[1.0]),
            x,
            gl.mean.ZeroMean(),
            y,
            gl.likelihood.LogitLikelihood(),
        )
        with self.assertRaises(gl.ConfigurationError):
            inf.register_minimizer(object())

    def test_missing_line_search(self):
        x, y = classification_data()
        inf = gl.SingleLaplaceInference(
            gl.kernel.MaternKernel(p=1, loginvrho=[1.0]),
            x,
            gl.mean.ZeroMean(),
            y,
            gl.likelihood.LogitLikelihood(),
            minimizer=gl.NewtonMinimizer(line_search=None),
        )
        with self.assertRaises(gl.UnsupportedCapabilityError):
            inf.get_negative_log_marginal_likelihood()


class TestModeFinding(unittest.TestCase):
    def setUp(self):
        self.x, self.y = classification_data()
        self.inf = gl.SingleLaplaceInference(
            gl.kernel.MaternKernel(p=1, loginvrho=[math.log(1 / 0.3)]),
            self.x,
            gl.mean.ConstantMean(0.2),
            self.y,
            gl.likelihood.LogitLikelihood(),
            log_scale=0.3,
        )

    def test_consistency(self):
        state = self.inf.get_state()
        self.assertTrue(state.check_consistency())
        Ks = state.K * math.exp(2 * 0.3)
        f = Ks @ self.inf.get_alpha() + 0.2
        np.testing.assert_allclose(self.inf.get_mode(), f, rtol=1e-10, atol=1e-12)
        np.testing.assert_allclose(
            self.inf.get_posterior_mean(), self.inf.get_mode() - 0.2, atol=1e-12
        )

    def test_stationarity(self):
        # at the mode, alpha = dlp(f) and dPsi/dalpha = 0
        self.inf.register_minimizer(tight_newton())
        g = np.zeros(self.y.shape[0])
        self.inf.get_negative_log_marginal_likelihood()
        self.inf.get_gradient_wrt_alpha(g)
        np.testing.assert_allclose(g, 0.0, atol=1e-6)
        self.assertAlmostEqual(self.inf.get_psi_wrt_alpha(), self.inf.get_psi(), places=10)
        with self.assertRaises(gl.ConfigurationError):
            self.inf.get_gradient_wrt_alpha(np.zeros(3))

    def test_idempotent_update(self):
        nlz1 = self.inf.get_negative_log_marginal_likelihood()
        alpha1 = self.inf.get_alpha()
        self.inf.update()
        nlz2 = self.inf.get_negative_log_marginal_likelihood()
        self.assertAlmostEqual(nlz1, nlz2, places=8)
        np.testing.assert_allclose(alpha1, self.inf.get_alpha(), rtol=1e-6, atol=1e-8)

    def test_lazy_update_on_change(self):
        nlz1 = self.inf.get_negative_log_marginal_likelihood()
        stamp = self.inf.get_state().stamp
        self.assertEqual(stamp, self.inf.parameter_hash())
        self.inf.kernel.params.set("loginvrho", [math.log(1 / 0.1)])
        self.assertTrue(self.inf.parameter_hash_changed())
        nlz2 = self.inf.get_negative_log_marginal_likelihood()
        self.assertNotAlmostEqual(nlz1, nlz2, places=6)
        self.inf.set_scale(2.0)
        self.assertAlmostEqual(self.inf.log_scale, math.log(2.0))
        self.assertTrue(self.inf.parameter_hash_changed())

    def test_kernel_configuration_changes(self):
        nlz1 = self.inf.get_negative_log_marginal_likelihood()
        self.inf.kernel.p = 2
        self.assertTrue(self.inf.parameter_hash_changed())
        nlz2 = self.inf.get_negative_log_marginal_likelihood()
        self.assertNotAlmostEqual(nlz1, nlz2, places=6)
        fresh = gl.SingleLaplaceInference(
            gl.kernel.MaternKernel(p=2, loginvrho=[math.log(1 / 0.3)]),
            self.x,
            gl.mean.ConstantMean(0.2),
            self.y,
            gl.likelihood.LogitLikelihood(),
            log_scale=0.3,
        )
        self.assertAlmostEqual(nlz2, fresh.get_negative_log_marginal_likelihood(), places=5)

        inf = gl.SingleLaplaceInference(
            gl.kernel.PrecomputedKernel(exponential_matrix(self.x)),
            self.x,
            gl.mean.ZeroMean(),
            self.y,
            gl.likelihood.LogitLikelihood(),
        )
        nlz1 = inf.get_negative_log_marginal_likelihood()
        inf.kernel.matrix *= 2.0
        self.assertTrue(inf.parameter_hash_changed())
        nlz2 = inf.get_negative_log_marginal_likelihood()
        self.assertNotAlmostEqual(nlz1, nlz2, places=6)

    def test_psi_non_increasing(self):
        starts = []

        def recording_line_search(func, lower, upper, xatol):
            starts.append(func(0.0))
            return gnp.minimize_scalar_bounded(func, lower, upper, xatol)

        self.inf.register_minimizer(gl.NewtonMinimizer(line_search=recording_line_search))
        self.inf.set_log_scale(1.5)
        psi = self.inf.get_psi()
        self.assertGreater(len(starts), 1)
        self.assertTrue(all(b <= a for a, b in zip(starts, starts[1:])))
        self.assertLessEqual(psi, starts[0])

    def test_convergence_warning(self):
        self.inf.register_minimizer(gl.NewtonMinimizer(max_iter=1, tolerance=1e-12))
        self.inf.set_log_scale(2.0)
        with self.assertWarns(gl.ConvergenceWarning):
            self.inf.update()
        self.assertFalse(self.inf.minimizer.converged)

    def test_newton_and_first_order_agree(self):
        K = exponential_matrix(self.x)
        kernel = gl.kernel.PrecomputedKernel(K)
        newton = gl.SingleLaplaceInference(
            kernel, self.x, gl.mean.ZeroMean(), self.y,
            gl.likelihood.LogitLikelihood(), minimizer=tight_newton(),
        )
        first = gl.SingleLaplaceInference(
            kernel, self.x, gl.mean.ZeroMean(), self.y,
            gl.likelihood.LogitLikelihood(),
            minimizer=gl.FirstOrderMinimizer(method="L-BFGS-B"),
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", gl.ConvergenceWarning)
            f1 = newton.get_mode()
            f2 = first.get_mode()
        np.testing.assert_allclose(f1, f2, rtol=1e-4, atol=1e-4)
        self.assertAlmostEqual(
            newton.get_negative_log_marginal_likelihood(),
            first.get_negative_log_marginal_likelihood(),
            places=4,
        )


class TestFactorization(unittest.TestCase):
    def test_cholesky_single_point(self):
        k = 2.0
        inf = gl.SingleLaplaceInference(
            gl.kernel.PrecomputedKernel([[k]]),
            [[0.0]],
            gl.mean.ZeroMean(),
            [1.0],
            gl.likelihood.LogitLikelihood(),
            log_scale=0.25,
        )
        nlz = inf.get_negative_log_marginal_likelihood()
        self.assertEqual(inf.get_factorization_kind(), "cholesky")
        f = inf.get_mode()[0]
        p = 1.0 / (1.0 + math.exp(-f))
        w = p * (1.0 - p)
        s = math.exp(0.5)
        expected = inf.get_psi() + 0.5 * math.log(1.0 + k * s * w)
        self.assertAlmostEqual(nlz, expected, places=10)

    def test_lu_single_point(self):
        k = 0.01
        lik = gl.likelihood.StudentsTLikelihood(math.log(0.1), math.log(3.0))
        inf = gl.SingleLaplaceInference(
            gl.kernel.PrecomputedKernel([[k]]),
            [[0.0]],
            gl.mean.ZeroMean(),
            [5.0],
            lik,
        )
        nlz = inf.get_negative_log_marginal_likelihood()
        self.assertEqual(inf.get_factorization_kind(), "lu")
        w = -lik.log_probability_derivative([5.0], inf.get_mode(), 2)[0]
        self.assertLess(w, 0.0)
        expected = inf.get_psi() + 0.5 * math.log(abs(1.0 + k * w))
        self.assertAlmostEqual(nlz, expected, places=10)

    def test_branch_selection(self):
        x, y = outlier_data()
        kernel = gl.kernel.MaternKernel(p=1, loginvrho=[math.log(1 / 0.3)])
        robust = gl.SingleLaplaceInference(
            kernel, x, gl.mean.ZeroMean(), y,
            gl.likelihood.StudentsTLikelihood(math.log(0.2), math.log(3.0)),
        )
        self.assertEqual(robust.get_factorization_kind(), "lu")
        self.assertLess(np.min(robust.get_state().W), 0.0)
        sW = robust.get_diagonal_vector()
        W = robust.get_state().W
        np.testing.assert_allclose(np.sign(sW) * sW * sW, W, atol=1e-12)

        gaussian = gl.SingleLaplaceInference(
            kernel, x, gl.mean.ZeroMean(), y,
            gl.likelihood.GaussianLikelihood(math.log(0.2)),
        )
        self.assertEqual(gaussian.get_factorization_kind(), "cholesky")
        L = gaussian.get_cholesky()
        np.testing.assert_allclose(L, np.triu(L))

    def test_posterior_covariance(self):
        x, y = outlier_data()
        K = exponential_matrix(x)
        for lik, yy in (
            (gl.likelihood.LogitLikelihood(), np.where(y > 0.5, 1.0, -1.0)),
            (gl.likelihood.StudentsTLikelihood(math.log(0.2), math.log(3.0)), y),
        ):
            inf = gl.SingleLaplaceInference(
                gl.kernel.PrecomputedKernel(K), x, gl.mean.ZeroMean(), yy, lik,
                log_scale=0.1,
            )
            Sigma = inf.get_posterior_covariance()
            W = inf.get_state().W
            Ks = K * math.exp(0.2)
            expected = np.linalg.inv(np.linalg.inv(Ks) + np.diag(W))
            np.testing.assert_allclose(Sigma, expected, rtol=1e-6, atol=1e-8)

    def test_gaussian_likelihood_is_exact(self):
        x, y = outlier_data()
        sigma = 0.3
        kernel = gl.kernel.MaternKernel(p=2, loginvrho=[math.log(1 / 0.4)])
        inf = gl.SingleLaplaceInference(
            kernel, x, gl.mean.ConstantMean(0.5), y,
            gl.likelihood.GaussianLikelihood(math.log(sigma)), log_scale=0.2,
        )
        nlz = inf.get_negative_log_marginal_likelihood()
        kernel.init(x)
        C = kernel.get_kernel_matrix() * math.exp(0.4) + sigma**2 * np.eye(x.shape[0])
        r = y - 0.5
        _, logdet = np.linalg.slogdet(C)
        expected = 0.5 * r @ np.linalg.solve(C, r) + 0.5 * logdet + 0.5 * len(y) * math.log(2 * math.pi)
        self.assertAlmostEqual(nlz, expected, places=8)

    def test_near_singular_lu(self):
        with self.assertRaises(gl.FactorizationError):
            linalg.guarded_lu_factor(np.array([[1.0, 2.0], [2.0, 4.0]]))
        with self.assertRaises(gl.FactorizationError):
            linalg.upper_cholesky(np.array([[1.0, 2.0], [2.0, 1.0]]))
        with self.assertRaises(gl.FactorizationError):
            linalg.upper_cholesky(np.array([[np.nan, 0.0], [0.0, 1.0]]))


def _fd(fun, theta, h=1e-4):
    theta = np.asarray(theta, dtype=float)
    grad = np.zeros(theta.shape[0])
    for i in range(theta.shape[0]):
        e = np.zeros_like(theta)
        e[i] = h
        grad[i] = (fun(theta + e) - fun(theta - e)) / (2 * h)
    return grad


class TestGradients(unittest.TestCase):
    """Analytic derivatives of nlZ against central finite differences."""

    def build(self, log_scale=0.3, loginvrho=(math.log(1 / 0.3),), c=0.2,
              lik=None, data=classification_data, p=1):
        x, y = data()
        lik = gl.likelihood.LogitLikelihood() if lik is None else lik
        return gl.SingleLaplaceInference(
            gl.kernel.MaternKernel(p=p, loginvrho=list(loginvrho)),
            x,
            gl.mean.ConstantMean(c),
            y,
            lik,
            log_scale=log_scale,
            minimizer=tight_newton(),
        )

    def test_scale(self):
        inf = self.build()
        d = inf.get_derivative_wrt_inference_method(inf.get_inference_hyperparameters()[0])
        fd = _fd(lambda t: self.build(log_scale=t[0]).get_negative_log_marginal_likelihood(), [0.3])
        np.testing.assert_allclose(d, fd, rtol=1e-3, atol=1e-5)

    def test_kernel(self):
        for p in (0, 1, 2):
            inf = self.build(p=p)
            d = inf.get_derivative_wrt_kernel(inf.kernel.params.handle("loginvrho"))
            fd = _fd(
                lambda t: self.build(loginvrho=t, p=p).get_negative_log_marginal_likelihood(),
                [math.log(1 / 0.3)],
            )
            np.testing.assert_allclose(d, fd, rtol=1e-3, atol=1e-5)

    def test_kernel_shared_between_engines(self):
        x, y = classification_data()
        kernel = gl.kernel.MaternKernel(p=1, loginvrho=[math.log(1 / 0.3)])
        first = gl.SingleLaplaceInference(
            kernel, x, gl.mean.ConstantMean(0.2), y,
            gl.likelihood.LogitLikelihood(), log_scale=0.3, minimizer=tight_newton(),
        )
        first.get_negative_log_marginal_likelihood()
        other = gl.SingleLaplaceInference(
            kernel, 3.0 * x, gl.mean.ZeroMean(), y, gl.likelihood.LogitLikelihood()
        )
        other.get_negative_log_marginal_likelihood()
        d = first.get_derivative_wrt_kernel(kernel.params.handle("loginvrho"))
        alone = self.build()
        expected = alone.get_derivative_wrt_kernel(alone.kernel.params.handle("loginvrho"))
        np.testing.assert_allclose(d, expected, rtol=1e-6, atol=1e-10)

    def test_mean(self):
        inf = self.build()
        d = inf.get_derivative_wrt_mean(inf.mean.params.handle("mean"))
        fd = _fd(lambda t: self.build(c=t[0]).get_negative_log_marginal_likelihood(), [0.2])
        np.testing.assert_allclose(d, fd, rtol=1e-3, atol=1e-5)

    def test_linear_mean(self):
        x, y = classification_data()

        def make(theta):
            return gl.SingleLaplaceInference(
                gl.kernel.MaternKernel(p=1, loginvrho=[1.0]), x,
                gl.mean.LinearMean(theta[:1], theta[1]), y,
                gl.likelihood.ProbitLikelihood(), minimizer=tight_newton(),
            )

        theta = np.array([0.7, -0.3])
        inf = make(theta)
        d = np.concatenate(
            (
                inf.get_derivative_wrt_mean(inf.mean.params.handle("weights")),
                inf.get_derivative_wrt_mean(inf.mean.params.handle("bias")),
            )
        )
        fd = _fd(lambda t: make(t).get_negative_log_marginal_likelihood(), theta)
        np.testing.assert_allclose(d, fd, rtol=1e-3, atol=1e-5)

    def test_likelihood(self):
        def make(t):
            return self.build(lik=gl.likelihood.GaussianLikelihood(t), data=outlier_data)

        inf = make(math.log(0.3))
        d = inf.get_derivative_wrt_likelihood_model(inf.likelihood.params.handle("log_sigma"))
        fd = _fd(lambda t: make(t[0]).get_negative_log_marginal_likelihood(), [math.log(0.3)])
        np.testing.assert_allclose(d, fd, rtol=1e-3, atol=1e-5)

    def test_lu_branch(self):
        def make(theta):
            lik = gl.likelihood.StudentsTLikelihood(theta[0], theta[1])
            return self.build(
                lik=lik, data=outlier_data, loginvrho=theta[2:3], log_scale=theta[3]
            )

        theta = np.array([math.log(0.2), math.log(3.0), math.log(1 / 0.3), 0.1])
        inf = make(theta)
        self.assertEqual(inf.get_factorization_kind(), "lu")
        d = inf.get_negative_log_marginal_likelihood_derivatives()
        analytic = np.concatenate(
            (
                d[inf.likelihood.params.handle("log_sigma")],
                d[inf.likelihood.params.handle("log_df")],
                d[inf.kernel.params.handle("loginvrho")],
                d[inf.get_inference_hyperparameters()[0]],
            )
        )
        fd = _fd(lambda t: make(t).get_negative_log_marginal_likelihood(), theta)
        np.testing.assert_allclose(analytic, fd, rtol=1e-3, atol=1e-4)

    def test_derivatives_dictionary(self):
        inf = self.build()
        d = inf.get_negative_log_marginal_likelihood_derivatives()
        names = sorted(h.name for h in d)
        self.assertEqual(names, ["log_scale", "loginvrho", "mean"])
        for h, v in d.items():
            self.assertEqual(v.shape, (h.size,))
            self.assertTrue(np.all(np.isfinite(v)))

    def test_unknown_handles(self):
        inf = self.build()
        with self.assertRaises(gl.ConfigurationError):
            inf.get_derivative_wrt_kernel(Hyperparameter("foo"))
        with self.assertRaises(gl.ConfigurationError):
            inf.get_derivative_wrt_kernel(Hyperparameter("loginvrho"))
        with self.assertRaises(gl.ConfigurationError):
            inf.get_derivative_wrt_mean(Hyperparameter("mean"))
        with self.assertRaises(gl.ConfigurationError):
            inf.get_derivative_wrt_kernel(inf.mean.params.handle("mean"))
        with self.assertRaises(gl.ConfigurationError):
            inf.get_derivative_wrt_inference_method(inf.kernel.params.handle("loginvrho"))
        with self.assertRaises(gl.ConfigurationError):
            inf.get_derivative_wrt_likelihood_model(Hyperparameter("log_sigma"))
        with self.assertRaises(gl.ConfigurationError):
            inf.get_derivative_wrt_mean("mean")


if __name__ == "__main__":
    unittest.main()
