from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Integral
from typing import Union

import numpy as np

from oselm.core.errors import DimensionMismatch, InvalidDimension

SeedLike = Union[int, np.random.Generator, None]

# Shared by every model built without an explicit seed.
_DEFAULT_RNG = np.random.default_rng()


def default_rng() -> np.random.Generator:
    return _DEFAULT_RNG


def resolve_rng(seed: SeedLike) -> np.random.Generator:
    if seed is None:
        return _DEFAULT_RNG
    if isinstance(seed, np.random.Generator):
        return seed
    if isinstance(seed, Integral) and not isinstance(seed, bool):
        return np.random.default_rng(int(seed))
    raise TypeError(f"seed must be an int, a numpy Generator or None, got {type(seed).__name__}")


def check_dim(name: str, value: object) -> int:
    if value is None:
        raise InvalidDimension(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidDimension(f"{name} must be an integer, got {value!r}")
    if int(value) <= 0:
        raise InvalidDimension(f"{name} must be > 0, got {value!r}")
    return int(value)


@dataclass(frozen=True, slots=True)
class RandomProjection:
    """Fixed random input->hidden affine map of an ELM.

    - weight: [in_dim, out_dim], i.i.d. U[-1, 1]
    - bias:   [1, out_dim],      i.i.d. U[0, 1]

    Both are drawn once, weight first, from the same generator, and are
    read-only afterwards. The same integer seed gives bit-identical arrays.
    """

    in_dim: int
    out_dim: int
    weight: np.ndarray = field(repr=False)
    bias: np.ndarray = field(repr=False)

    @classmethod
    def generate(cls, in_dim: int, out_dim: int, seed: SeedLike = None) -> RandomProjection:
        in_dim = check_dim("input_dim", in_dim)
        out_dim = check_dim("hidden_width", out_dim)
        rng = resolve_rng(seed)

        weight = rng.random((in_dim, out_dim)) * 2.0 - 1.0
        bias = rng.random((1, out_dim))
        weight.setflags(write=False)
        bias.setflags(write=False)
        return cls(in_dim=in_dim, out_dim=out_dim, weight=weight, bias=bias)

    def project(self, X: np.ndarray) -> np.ndarray:
        """Pre-activation X @ weight + bias, broadcast over rows."""
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2 or X.shape[1] != self.in_dim:
            raise DimensionMismatch(f"X must be [N, {self.in_dim}], got {X.shape}")
        return X @ self.weight + self.bias
