## --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
## --------------------------------------------------------------
import sys
import numpy as np
import scipy.stats as stats
import matplotlib.pyplot as plt
from matplotlib import interactive


class Figure:
    """Figures manager class.

    Thin wrapper around a matplotlib figure with helpers to display
    latent posteriors and class probabilities produced by the Laplace
    approximation.
    """

    def __init__(self, nrows=1, ncols=1, isinteractive=True, boxoff=True, **kargs):
        # Check if we run in interpreter mode
        self.interpreter = False
        try:
            if sys.ps1:
                self.interpreter = True
        except AttributeError:
            self.interpreter = False
            if sys.flags.interactive:
                self.interpreter = True

        if isinteractive & self.interpreter:
            interactive(True)

        self.boxoff = boxoff

        self.fig = plt.figure(**kargs)

        self.nrows = nrows
        self.ncols = ncols
        self.axes = []
        for i in range(nrows * ncols):
            self.axes.append(self.fig.add_subplot(nrows, ncols, i + 1))
        self.ax = self.axes[0]
        if self.boxoff:
            self.set_boxoff()

    def set_boxoff(self):
        self.ax.spines["right"].set_visible(False)
        self.ax.spines["top"].set_visible(False)
        self.ax.tick_params(direction="in")

    def subplot(self, i):
        self.ax = self.axes[i - 1]
        if self.boxoff:
            self.set_boxoff()

    def show(self, grid=None, legend=None):
        if grid:
            self.grid()
        if legend:
            self.legend()
        plt.show()

    def close(self):
        plt.close(self.fig)

    def plot(self, x, z, *args, **kargs):
        self.ax.plot(x, z, *args, **kargs)

    def plotdata(self, x, z, label="data"):
        self.ax.plot(x, z, "rs", markerfacecolor="none", markersize=6, label=label)

    def plotlabels(self, x, y, label="labels"):
        """Binary labels in {-1, +1}, drawn as 0/1 markers."""
        x = np.asarray(x).flatten()
        y01 = (np.asarray(y).flatten() + 1.0) / 2.0
        self.ax.plot(x, y01, "k|", markersize=12, label=label)

    def xylabels(self, sx="", sy=""):
        self.ax.set_xlabel(sx)
        self.ax.set_ylabel(sy)

    def title(self, s):
        self.ax.set_title(s)

    def legend(self, **kwargs):
        self.ax.legend(**kwargs)

    def grid(self, visible=True, which="major", linestyle=(0, (1, 5)), linewidth=0.5, **kwargs):
        self.ax.grid(visible, which, linestyle=linestyle, linewidth=linewidth, **kwargs)

    def plotlaplace(
        self,
        x,
        mode,
        variance,
        mode_label="posterior mode",
        ci=0.95,
        ci_label="CI 95%",
        **kwargs
    ):
        """Latent mode with a Gaussian coverage interval.

        norminv (1 - 0.05/2)  = 1.959964
        """
        x = np.asarray(x).flatten()
        mode = np.asarray(mode).flatten()
        delta = stats.norm.ppf((1 + ci) / 2)
        sd = np.sqrt(np.maximum(np.asarray(variance).flatten(), 0.0))

        order = np.argsort(x)
        x, mode, sd = x[order], mode[order], sd[order]
        lower = mode - delta * sd
        upper = mode + delta * sd

        self.ax.fill(
            np.hstack((x, x[::-1])),
            np.hstack((upper, lower[::-1])),
            color="#BFBFBF",
            alpha=0.8,
            linewidth=0.5,
            label=ci_label,
            **kwargs
        )
        self.ax.plot(x, mode, "#F2404C", linewidth=2.0, label=mode_label)

    def plotprobability(self, x, prob, label="P(y = +1)"):
        x = np.asarray(x).flatten()
        order = np.argsort(x)
        self.ax.plot(x[order], np.asarray(prob).flatten()[order], "C0", linewidth=1.5, label=label)
        self.ax.set_ylim((-0.05, 1.05))
