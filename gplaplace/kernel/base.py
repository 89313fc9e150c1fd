# gplaplace/kernel/base.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Kernel providers.

A kernel provider is bound to the training features with `init` and then
returns the (unit-scale) kernel matrix K over them, along with the
derivatives of K with respect to its hyperparameters. The overall scale
of the covariance is owned by the inference engine.
"""
import gplaplace.num as gnp
from gplaplace.misc.param import ParamSet
from gplaplace.core.utils import ConfigurationError


class KernelProvider:
    """Base class of kernel providers.

    Subclasses implement `_kernel_matrix(x)` and
    `_parameter_gradient(x, name, index)`.

    Attributes
    ----------
    params : ParamSet
        Named hyperparameters of the kernel.
    """

    def __init__(self, **params):
        self.params = ParamSet(owner=self, **params)
        self._x = None

    def init(self, features):
        """Bind the kernel to the features it is evaluated on.

        Parameters
        ----------
        features : array_like, shape (n, d)
        """
        x = gnp.asarray(features)
        if x.ndim == 1:
            x = x.reshape(-1, 1)
        self._x = x
        return self

    def _require_init(self):
        if self._x is None:
            raise ConfigurationError(
                f"{type(self).__name__} must be initialized with features first"
            )
        return self._x

    def get_kernel_matrix(self):
        """Kernel matrix over the bound features, shape (n, n)."""
        return self._kernel_matrix(self._require_init())

    def get_parameter_gradient(self, param, index=None):
        """Derivative of the kernel matrix with respect to one element of a
        hyperparameter.

        Parameters
        ----------
        param : Hyperparameter
        index : int or None
            Element of the hyperparameter. May be None when the parameter
            has a single element.

        Returns
        -------
        dK : ndarray, shape (n, n)
        """
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
        if not 0 <= index < param.size:
            raise ConfigurationError(
                f"Index {index} out of range for hyperparameter {param.name!r}"
            )
        return self._parameter_gradient(self._require_init(), param.name, index)

    def config_bytes(self):
        """Bytes of the kernel configuration held outside `params`."""
        return b""

    def _kernel_matrix(self, x):
        raise NotImplementedError

    def _parameter_gradient(self, x, name, index):
        raise NotImplementedError


class PrecomputedKernel(KernelProvider):
    """Fixed kernel matrix with no hyperparameters.

    Parameters
    ----------
    matrix : array_like, shape (n, n)
    """

    def __init__(self, matrix):
        super().__init__()
        self.matrix = gnp.asarray(matrix)

    def __repr__(self):
        return f"PrecomputedKernel(n={self.matrix.shape[0]})"

    def init(self, features):
        # features are only used to check the size
        x = gnp.asarray(features)
        if x.shape[0] != self.matrix.shape[0]:
            raise ConfigurationError(
                f"Precomputed kernel matrix has size {self.matrix.shape[0]}, "
                f"but {x.shape[0]} features were given"
            )
        self._x = x
        return self

    def _kernel_matrix(self, x):
        return self.matrix

    def config_bytes(self):
        return str(self.matrix.shape).encode() + gnp.tobytes(self.matrix)
