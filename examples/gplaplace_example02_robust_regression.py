'''
Robust GP regression in 1D with a Student's-t likelihood.

A few observations are corrupted by large outliers. The Student's-t
likelihood is not log-concave, so the curvature W at the mode has
negative entries at the outliers and the Laplace approximation switches
to its LU factorization. The same problem is solved with a Gaussian
likelihood for comparison.

----
Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
'''
import math
import numpy as np
import gplaplace.num as gnp
import gplaplace as gl


def generate_data(n=30, noise_std=0.1, seed=1):
    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, n).reshape(-1, 1)
    f = np.sin(3.0 * x[:, 0])
    y = f + noise_std * rng.standard_normal(n)
    y[[5, 17, 24]] += np.array([3.0, -4.0, 3.5])
    return x, y, f


def solve(x, y, likelihood):
    kernel = gl.kernel.MaternKernel(p=2, loginvrho=[math.log(1 / 0.4)])
    inference = gl.SingleLaplaceInference(
        kernel, x, gl.mean.ZeroMean(), y, likelihood, log_scale=0.0
    )
    nlz = inference.get_negative_log_marginal_likelihood()
    return inference, nlz


def main():
    x, y, f_true = generate_data()
    robust, nlz_t = solve(x, y, gl.likelihood.StudentsTLikelihood(math.log(0.1), math.log(3.0)))
    gaussian, nlz_g = solve(x, y, gl.likelihood.GaussianLikelihood(math.log(0.1)))

    print(f"Student-t: nlZ={nlz_t:.3f}, factorization={robust.get_factorization_kind()}")
    print(f"Gaussian:  nlZ={nlz_g:.3f}, factorization={gaussian.get_factorization_kind()}")

    mode_t = robust.get_mode()
    var_t = gnp.diag(robust.get_posterior_covariance())
    mode_g = gaussian.get_mode()
    return x, y, f_true, mode_t, var_t, mode_g


def visualize(x, y, f_true, mode_t, var_t, mode_g):
    import gplaplace.misc.plotutils as plotutils

    fig = plotutils.Figure(isinteractive=True)
    fig.plot(x, f_true, "C0", linestyle=(0, (5, 5)), linewidth=1, label="truth")
    fig.plotdata(x, y)
    fig.plotlaplace(x, mode_t, var_t, mode_label="Student-t mode")
    fig.plot(x, mode_g, "C2", linewidth=1.0, label="Gaussian mode")
    fig.xylabels("x", "z")
    fig.title("Robust regression with outliers")
    fig.show(grid=True, legend=True)


if __name__ == "__main__":
    visualize(*main())
