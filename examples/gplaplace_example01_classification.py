'''
Binary GP classification in 1D with the Laplace approximation.

Labels in {-1, +1} are drawn from a logistic model whose latent function
is a smooth bump. The latent prior is a Matérn 3/2 process with a
constant mean. We fit log_scale, the inverse length scale and the
constant mean by minimizing the negative log marginal likelihood of the
Laplace approximation with its analytic gradient, then display the
latent mode with a 95% interval from the Gaussian approximation.

----
Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
'''
import math
import numpy as np
import scipy.optimize
import gplaplace.num as gnp
import gplaplace as gl


def generate_data(n=40, seed=0):
    """Inputs on [-1, 1] and +/-1 labels from a logistic model."""
    rng = np.random.default_rng(seed)
    x = np.sort(rng.uniform(-1.0, 1.0, n)).reshape(-1, 1)
    f = 4.0 * np.exp(-((x[:, 0] / 0.4) ** 2)) - 2.0
    p = 1.0 / (1.0 + np.exp(-f))
    y = np.where(rng.uniform(size=n) < p, 1.0, -1.0)
    return x, y, f


def build_inference(x, y):
    kernel = gl.kernel.MaternKernel(p=1, loginvrho=[math.log(1 / 0.5)])
    mean = gl.mean.ConstantMean(0.0)
    likelihood = gl.likelihood.LogitLikelihood()
    return gl.SingleLaplaceInference(kernel, x, mean, y, likelihood, log_scale=0.0)


def fit_hyperparameters(inference):
    """Minimize nlZ over (log_scale, loginvrho, mean) with L-BFGS-B."""
    scale_h = inference.get_inference_hyperparameters()[0]
    rho_h = inference.kernel.params.handle("loginvrho")
    mean_h = inference.mean.params.handle("mean")

    def assign(theta):
        inference.set_log_scale(theta[0])
        inference.kernel.params.set("loginvrho", theta[1:2])
        inference.mean.params.set("mean", theta[2:3])

    def criterion(theta):
        assign(theta)
        nlz = inference.get_negative_log_marginal_likelihood()
        grad = np.concatenate(
            (
                inference.get_derivative_wrt_inference_method(scale_h),
                inference.get_derivative_wrt_kernel(rho_h),
                inference.get_derivative_wrt_mean(mean_h),
            )
        )
        return nlz, grad

    theta0 = np.array(
        [inference.log_scale, inference.kernel.params.get("loginvrho")[0], 0.0]
    )
    r = scipy.optimize.minimize(
        criterion,
        theta0,
        jac=True,
        method="L-BFGS-B",
        bounds=[(-3.0, 3.0), (-3.0, 4.0), (-5.0, 5.0)],
    )
    assign(r.x)
    return r


def main():
    """Fit the classifier and return the Laplace posterior at the data."""
    x, y, f_true = generate_data()
    inference = build_inference(x, y)
    nlz_init = inference.get_negative_log_marginal_likelihood()
    r = fit_hyperparameters(inference)
    nlz = inference.get_negative_log_marginal_likelihood()

    mode = inference.get_mode()
    variance = gnp.diag(inference.get_posterior_covariance())
    print(f"nlZ: {nlz_init:.4f} (initial) -> {nlz:.4f} (fitted)")
    print(f"log_scale={r.x[0]:.3f}, loginvrho={r.x[1]:.3f}, mean={r.x[2]:.3f}")
    return x, y, f_true, mode, variance


def visualize(x, y, f_true, mode, variance):
    """Plot the latent mode, its interval and the labels."""
    import gplaplace.misc.plotutils as plotutils

    fig = plotutils.Figure(nrows=2, ncols=1, isinteractive=True)
    fig.plot(x, f_true, "C0", linestyle=(0, (5, 5)), linewidth=1, label="latent f")
    fig.plotlaplace(x, mode, variance)
    fig.xylabels("x", "f")
    fig.title("Laplace approximation, logistic likelihood")
    fig.subplot(2)
    fig.plotlabels(x, y)
    fig.plotprobability(x, 1.0 / (1.0 + np.exp(-mode)))
    fig.xylabels("x", "probability")
    fig.show(grid=True, legend=True)


if __name__ == "__main__":
    visualize(*main())
