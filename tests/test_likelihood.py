import math
import unittest
import numpy as np
import gplaplace as gl


def _central(fun, x, h=1e-5):
    return (fun(x + h) - fun(x - h)) / (2 * h)


class TestLikelihoodDerivatives(unittest.TestCase):
    def setUp(self):
        self.f = np.array([-2.0, -0.3, 0.0, 0.4, 1.7])
        self.binary = np.array([1.0, -1.0, 1.0, -1.0, 1.0])
        self.real = np.array([-1.0, 0.2, 3.0, 0.5, -0.4])

    def models(self):
        return (
            (gl.likelihood.LogitLikelihood(), self.binary),
            (gl.likelihood.ProbitLikelihood(), self.binary),
            (gl.likelihood.GaussianLikelihood(math.log(0.7)), self.real),
            (gl.likelihood.StudentsTLikelihood(math.log(0.5), math.log(4.0)), self.real),
        )

    def test_derivatives_wrt_f(self):
        for lik, y in self.models():
            funcs = [
                lambda f: lik.log_probability(y, f),
                lambda f: lik.log_probability_derivative(y, f, 1),
                lambda f: lik.log_probability_derivative(y, f, 2),
            ]
            for order in (1, 2, 3):
                with self.subTest(model=lik, order=order):
                    expected = _central(funcs[order - 1], self.f)
                    actual = lik.log_probability_derivative(y, self.f, order)
                    np.testing.assert_allclose(actual, expected, rtol=1e-5, atol=1e-7)

    def test_derivatives_wrt_hyperparameters(self):
        for lik, y in self.models()[2:]:
            for handle in lik.params.handles():
                base = lik.params.get(handle.name)[0]

                def at(t, order):
                    lik.params.set(handle.name, [t])
                    if order == 0:
                        v = lik.log_probability(y, self.f)
                    else:
                        v = lik.log_probability_derivative(y, self.f, order)
                    lik.params.set(handle.name, [base])
                    return v

                getters = (lik.first_derivative, lik.second_derivative, lik.third_derivative)
                for order, getter in enumerate(getters):
                    with self.subTest(model=lik, param=handle.name, order=order):
                        expected = _central(lambda t: at(t, order), base)
                        actual = getter(y, self.f, handle)
                        np.testing.assert_allclose(actual, expected, rtol=1e-5, atol=1e-7)

    def test_probit_tail_is_finite(self):
        lik = gl.likelihood.ProbitLikelihood()
        f = np.array([-40.0, 40.0])
        y = np.array([1.0, 1.0])
        for order in (1, 2, 3):
            self.assertTrue(np.all(np.isfinite(lik.log_probability_derivative(y, f, order))))
        self.assertTrue(np.all(np.isfinite(lik.log_probability(y, f))))

    def test_students_t_curvature_sign(self):
        lik = gl.likelihood.StudentsTLikelihood(math.log(0.1), math.log(3.0))
        W = -lik.log_probability_derivative([0.0, 5.0], [0.0, 0.0], 2)
        self.assertGreater(W[0], 0.0)
        self.assertLess(W[1], 0.0)
        self.assertAlmostEqual(lik.degrees_of_freedom(), 3.0)
        self.assertEqual(lik.model_type, "studentst")

    def test_invalid_inputs(self):
        lik = gl.likelihood.LogitLikelihood()
        with self.assertRaises(gl.ConfigurationError):
            lik.log_probability([0.0, 1.0], [0.0, 0.0])
        with self.assertRaises(gl.ConfigurationError):
            lik.log_probability([1.0, 1.0], [0.0])
        with self.assertRaises(ValueError):
            lik.log_probability_derivative([1.0], [0.0], 4)
        with self.assertRaises(gl.ConfigurationError):
            lik.first_derivative([1.0], [0.0], gl.likelihood.GaussianLikelihood().params.handle("log_sigma"))
        with self.assertRaises(NotImplementedError):
            lik.degrees_of_freedom()


if __name__ == "__main__":
    unittest.main()
