import logging
import unittest
import gplaplace as gl
from gplaplace import config


class TestConfig(unittest.TestCase):
    def setUp(self):
        c = config.get_config()
        self.saved = (
            c.newton_max_iter,
            c.newton_tolerance,
            c.line_search_tolerance,
            c.line_search_max,
        )

    def tearDown(self):
        config.set_newton_defaults(
            max_iter=self.saved[0],
            tolerance=self.saved[1],
            opt_tolerance=self.saved[2],
            opt_max=self.saved[3],
        )
        config.set_log_level(logging.INFO)

    def test_defaults(self):
        m = gl.NewtonMinimizer()
        self.assertEqual(m.max_iter, 20)
        self.assertEqual(m.tolerance, 1e-6)
        self.assertEqual(m.opt_tolerance, 1e-6)
        self.assertEqual(m.opt_max, 10.0)
        self.assertEqual(config.get_backend(), "numpy")

    def test_newton_defaults(self):
        config.set_newton_defaults(max_iter=5, opt_max=2.0)
        m = gl.NewtonMinimizer()
        self.assertEqual(m.max_iter, 5)
        self.assertEqual(m.opt_max, 2.0)
        self.assertEqual(gl.NewtonMinimizer(max_iter=7).max_iter, 7)
        with self.assertRaises(ValueError):
            config.set_newton_defaults(iterations=3)

    def test_logging(self):
        config.set_log_level(logging.DEBUG)
        inf = gl.SingleLaplaceInference(
            gl.kernel.PrecomputedKernel([[1.0, 0.5], [0.5, 1.0]]),
            [[0.0], [1.0]],
            gl.mean.ZeroMean(),
            [1.0, -1.0],
            gl.likelihood.ProbitLikelihood(),
        )
        with self.assertLogs("gplaplace", level="DEBUG") as logs:
            inf.update()
        text = "\n".join(logs.output)
        self.assertIn("entering update", text)
        self.assertIn("Cholesky branch", text)
        self.assertIn("newton iter 1", text)

    def test_first_order_method_check(self):
        with self.assertRaises(gl.ConfigurationError):
            gl.FirstOrderMinimizer(method="Nelder-Mead")


if __name__ == "__main__":
    unittest.main()
