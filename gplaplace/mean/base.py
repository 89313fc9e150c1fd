# gplaplace/mean/base.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Prior mean providers.
"""
import gplaplace.num as gnp
from gplaplace.misc.param import ParamSet
from gplaplace.core.utils import ConfigurationError


def _as_features(features):
    x = gnp.asarray(features)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    return x


class MeanProvider:
    """Base class of prior mean providers.

    Subclasses implement `_mean_vector(x)` and
    `_parameter_derivative(x, name, index)`.
    """

    def __init__(self, **params):
        self.params = ParamSet(owner=self, **params)

    def get_mean_vector(self, features):
        """Prior mean at the features, shape (n,)."""
        return self._mean_vector(_as_features(features))

    def get_parameter_derivative(self, features, param, index=None):
        """Derivative of the mean vector with respect to one element of a
        hyperparameter, shape (n,)."""
        if not self.params.recognizes(param):
            raise ConfigurationError(
                f"{type(self).__name__} has no hyperparameter {param!r}"
            )
        if index is None:
            if param.size != 1:
                raise ConfigurationError(
                    f"An index is required for hyperparameter {param.name!r} "
                    f"with {param.size} elements"
                )
            index = 0
        return self._parameter_derivative(_as_features(features), param.name, index)

    def _mean_vector(self, x):
        raise NotImplementedError

    def _parameter_derivative(self, x, name, index):
        raise NotImplementedError


class ZeroMean(MeanProvider):
    """m(x) = 0."""

    def __repr__(self):
        return "ZeroMean()"

    def _mean_vector(self, x):
        return gnp.zeros(x.shape[0])


class ConstantMean(MeanProvider):
    """m(x) = c, with hyperparameter ``mean``."""

    def __init__(self, c=0.0):
        super().__init__(mean=[c])

    def __repr__(self):
        return f"ConstantMean(c={self.params.get('mean')[0]})"

    def _mean_vector(self, x):
        return gnp.full(x.shape[0], self.params.get("mean")[0])

    def _parameter_derivative(self, x, name, index):
        return gnp.ones(x.shape[0])
