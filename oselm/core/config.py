from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, TypeVar

from oselm.core.activations import ActivationSpec, resolve_activation
from oselm.core.errors import InvalidDimension, MissingRequiredConfig
from oselm.core.random_projection import SeedLike, check_dim

_C = TypeVar("_C")


def _from_mapping(cls: type[_C], params: Mapping[str, Any]) -> _C:
    allowed = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(k for k in params if k not in allowed)
    if unknown:
        raise ValueError(f"unknown parameter(s): {unknown}. allowed={sorted(allowed)}")
    if params.get("input_dim") is None:
        raise MissingRequiredConfig("input_dim is required")
    return cls(**dict(params))


def _check_regularization(value: float) -> None:
    if not float(value) > 0.0:
        raise ValueError(f"regularization must be > 0, got {value!r}")


@dataclass(frozen=True, slots=True)
class ELMConfig:
    """Construction parameters of a single-hidden-layer OS-RELM."""

    input_dim: int | None = None
    hidden_width: int = 1000
    regularization: float = 1000.0
    activation: ActivationSpec = "sigmoid"
    # int seed, a prebuilt numpy Generator, or None for the process-wide default
    seed: SeedLike = None

    def __post_init__(self) -> None:
        if self.input_dim is None:
            raise MissingRequiredConfig("input_dim is required")
        check_dim("input_dim", self.input_dim)
        check_dim("hidden_width", self.hidden_width)
        _check_regularization(self.regularization)
        resolve_activation(self.activation)

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> ELMConfig:
        return _from_mapping(cls, params)


@dataclass(frozen=True, slots=True)
class StackedConfig:
    """Construction parameters of a stacked ELM (chain of reduced modules)."""

    input_dim: int | None = None
    hidden_width: int = 1000
    reduced_dimension: int = 100
    regularization: float = 1000.0
    max_modules: int = 100
    activation: ActivationSpec = "sigmoid"
    seed: SeedLike = None

    def __post_init__(self) -> None:
        if self.input_dim is None:
            raise MissingRequiredConfig("input_dim is required")
        check_dim("input_dim", self.input_dim)
        L = check_dim("hidden_width", self.hidden_width)
        l = check_dim("reduced_dimension", self.reduced_dimension)
        n_modules = check_dim("max_modules", self.max_modules)
        if n_modules > 1 and l >= L:
            raise InvalidDimension(f"reduced_dimension must be < hidden_width ({L}) when stacking, got {l}")
        _check_regularization(self.regularization)
        resolve_activation(self.activation)

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> StackedConfig:
        return _from_mapping(cls, params)
