# gplaplace/mean/linear.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
import gplaplace.num as gnp
from .base import MeanProvider


class LinearMean(MeanProvider):
    """Linear mean m(x) = x w + b.

    Parameters
    ----------
    weights : array_like, shape (d,)
        Hyperparameter ``weights``.
    bias : float
        Hyperparameter ``bias``.
    """

    def __init__(self, weights, bias=0.0):
        super().__init__(weights=weights, bias=[bias])

    def __repr__(self):
        return (
            f"LinearMean(weights={self.params.get('weights').tolist()}, "
            f"bias={self.params.get('bias')[0]})"
        )

    def _mean_vector(self, x):
        w = self.params.get("weights")
        if x.shape[1] != w.shape[0]:
            raise ValueError(
                f"LinearMean has {w.shape[0]} weight(s), but features have "
                f"{x.shape[1]} column(s)"
            )
        return gnp.matmul(x, w) + self.params.get("bias")[0]

    def _parameter_derivative(self, x, name, index):
        if name == "bias":
            return gnp.ones(x.shape[0])
        return gnp.copy(x[:, index])
