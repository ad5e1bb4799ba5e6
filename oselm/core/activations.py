from __future__ import annotations

from typing import Callable, Union

import numpy as np

from oselm.core.errors import UnsupportedActivation

Activation = Callable[[np.ndarray], np.ndarray]
ActivationSpec = Union[str, Activation]


def sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def sine(x: np.ndarray) -> np.ndarray:
    return np.sin(x)


def hardlim(x: np.ndarray) -> np.ndarray:
    # Step at 0; 0 itself maps to 1.
    return (x >= 0.0).astype(np.float64)


def tribas(x: np.ndarray) -> np.ndarray:
    return np.maximum(0.0, 1.0 - np.abs(x))


def radbas(x: np.ndarray) -> np.ndarray:
    return np.exp(-(x * x))


_REGISTRY: dict[str, Activation] = {
    "sig": sigmoid,
    "sigmoid": sigmoid,
    "sin": sine,
    "sine": sine,
    "hardlim": hardlim,
    "tribas": tribas,
    "radbas": radbas,
}


def available() -> list[str]:
    return sorted(_REGISTRY)


def resolve_activation(activation: ActivationSpec) -> Activation:
    """Return the elementwise function for a registered name or a callable.

    Names are matched case-insensitively; callables are used as given.
    """
    if isinstance(activation, str):
        fn = _REGISTRY.get(activation.strip().lower())
        if fn is None:
            raise UnsupportedActivation(f"unknown activation: {activation!r}. allowed={available()}")
        return fn
    if callable(activation):
        return activation
    raise UnsupportedActivation(f"activation must be a name or a callable, got {type(activation).__name__}")
