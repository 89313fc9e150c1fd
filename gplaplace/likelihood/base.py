# gplaplace/likelihood/base.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Likelihood models p(y | f) for the Laplace approximation.

All models are factorized over observations: every method returns one
value per label. Derivatives with respect to f are requested by order
(1, 2 or 3); derivatives with respect to a hyperparameter are taken with
respect to its logarithm and are provided for log p(y|f)
(`first_derivative`), d log p / df (`second_derivative`) and
d2 log p / df2 (`third_derivative`).
"""
import gplaplace.num as gnp
from gplaplace.misc.param import ParamSet
from gplaplace.core.utils import ConfigurationError


class LikelihoodModel:
    """Base class of likelihood models.

    Subclasses implement `_log_probability(y, f)`, `_dlp(y, f, order)` and,
    when they carry hyperparameters, `_hyper_derivative(y, f, name, order)`
    where order 0, 1, 2 correspond to lp, dlp, d2lp.
    """

    model_type = None

    def __init__(self, **params):
        self.params = ParamSet(owner=self, **params)

    @staticmethod
    def _prepare(labels, f):
        y = gnp.asarray(labels).reshape(-1)
        f = gnp.asarray(f).reshape(-1)
        if y.shape[0] != f.shape[0]:
            raise ConfigurationError(
                f"Labels ({y.shape[0]}) and latent values ({f.shape[0]}) differ in length"
            )
        return y, f

    def log_probability(self, labels, f):
        """log p(y_i | f_i), shape (n,)."""
        y, f = self._prepare(labels, f)
        return self._log_probability(y, f)

    def log_probability_derivative(self, labels, f, order):
        """Derivative of log p(y_i | f_i) with respect to f_i.

        Parameters
        ----------
        labels, f : array_like, shape (n,)
        order : {1, 2, 3}

        Returns
        -------
        ndarray, shape (n,)
        """
        if order not in (1, 2, 3):
            raise ValueError(f"Derivative order must be 1, 2 or 3, got {order}")
        y, f = self._prepare(labels, f)
        return self._dlp(y, f, order)

    def _hyper(self, labels, f, param, index, order):
        if not self.params.recognizes(param):
            raise ConfigurationError(
                f"{type(self).__name__} has no hyperparameter {param!r}"
            )
        if index not in (None, 0):
            raise ConfigurationError(
                f"Index {index} out of range for hyperparameter {param.name!r}"
            )
        y, f = self._prepare(labels, f)
        return self._hyper_derivative(y, f, param.name, order)

    def first_derivative(self, labels, f, param, index=None):
        """d log p(y|f) / d log(theta), shape (n,)."""
        return self._hyper(labels, f, param, index, 0)

    def second_derivative(self, labels, f, param, index=None):
        """d (d log p / df) / d log(theta), shape (n,)."""
        return self._hyper(labels, f, param, index, 1)

    def third_derivative(self, labels, f, param, index=None):
        """d (d2 log p / df2) / d log(theta), shape (n,)."""
        return self._hyper(labels, f, param, index, 2)

    def degrees_of_freedom(self):
        raise NotImplementedError(
            f"{type(self).__name__} has no degrees of freedom"
        )

    def _log_probability(self, y, f):
        raise NotImplementedError

    def _dlp(self, y, f, order):
        raise NotImplementedError

    def _hyper_derivative(self, y, f, name, order):
        raise NotImplementedError


class BinaryLikelihood(LikelihoodModel):
    """Likelihood of labels in {-1, +1}."""

    def _prepare(self, labels, f):
        y, f = super()._prepare(labels, f)
        if not gnp.all(gnp.abs(y) == 1.0):
            raise ConfigurationError(
                f"{type(self).__name__} expects labels in {{-1, +1}}"
            )
        return y, f
