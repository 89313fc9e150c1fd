# gplaplace/misc/param.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Hyperparameter handles and named parameter storage.

Kernels, means and likelihoods keep their tunable values in a
`ParamSet`. A `Hyperparameter` is the handle passed to derivative
getters: it carries the parameter name, its number of elements and the
owner it was issued by, so that the inference engine can check that a
request targets a parameter it actually knows about.
"""

from typing import Dict, List, Optional, Union
import gplaplace.num as gnp


class Hyperparameter:
    """Opaque hyperparameter handle.

    Parameters
    ----------
    name : str
        Name of the parameter inside its owner.
    size : int
        Number of scalar elements.
    owner : object, optional
        Collaborator (kernel, mean, likelihood or inference) that issued
        the handle.
    """

    def __init__(self, name: str, size: int = 1, owner=None):
        if size < 1:
            raise ValueError("A hyperparameter must have at least one element.")
        self.name = name
        self.size = int(size)
        self.owner = owner

    def __repr__(self):
        owner = type(self.owner).__name__ if self.owner is not None else None
        return f"Hyperparameter(name={self.name!r}, size={self.size}, owner={owner})"

    def __eq__(self, other):
        if not isinstance(other, Hyperparameter):
            return NotImplemented
        return (
            self.name == other.name
            and self.size == other.size
            and self.owner is other.owner
        )

    def __hash__(self):
        return hash((self.name, self.size, id(self.owner)))


class ParamSet:
    """Ordered named storage of 1D parameter arrays.

    Examples
    --------
    >>> p = ParamSet(owner=None, loginvrho=[0.0, 1.0])
    >>> p.get("loginvrho").shape
    (2,)
    >>> p.handle("loginvrho").size
    2
    """

    def __init__(self, owner=None, **values):
        self.owner = owner
        self._values: Dict[str, gnp.ndarray] = {}
        for name, v in values.items():
            self._values[name] = gnp.asarray(v, dtype=gnp.float64).reshape(-1)

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        items = ", ".join(f"{k}={v.tolist()}" for k, v in self._values.items())
        return f"ParamSet({items})"

    @property
    def names(self) -> List[str]:
        return list(self._values.keys())

    def get(self, name: str) -> gnp.ndarray:
        try:
            return self._values[name]
        except KeyError:
            raise KeyError(f"Unknown parameter: {name}") from None

    def set(self, name: str, value: Union[float, List[float], gnp.ndarray]) -> None:
        if name not in self._values:
            raise KeyError(f"Unknown parameter: {name}")
        new = gnp.asarray(value, dtype=gnp.float64).reshape(-1)
        if new.shape != self._values[name].shape:
            raise ValueError(
                f"Parameter {name} expects {self._values[name].shape[0]} elements, "
                f"got {new.shape[0]}"
            )
        self._values[name] = gnp.copy(new)

    def handle(self, name: str) -> Hyperparameter:
        return Hyperparameter(name, self.get(name).shape[0], self.owner)

    def handles(self) -> List[Hyperparameter]:
        return [self.handle(name) for name in self._values]

    def recognizes(self, param: Optional[Hyperparameter]) -> bool:
        """True if param was issued for this set (same owner, known name and size)."""
        if param is None or param.name not in self._values:
            return False
        if param.owner is not self.owner:
            return False
        return param.size == self._values[param.name].shape[0]

    def values_vector(self) -> gnp.ndarray:
        if not self._values:
            return gnp.zeros(0)
        return gnp.concatenate(list(self._values.values()))
