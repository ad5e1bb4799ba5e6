from __future__ import annotations

from typing import Any

import numpy as np

from oselm.core.activations import resolve_activation
from oselm.core.config import ELMConfig
from oselm.core.errors import ModelNotTrained
from oselm.core.random_projection import RandomProjection, resolve_rng
from oselm.core.sequential import Phase, SequentialRidge, Update


class OSRELM:
    """Online sequential regularized Extreme Learning Machine.

    A single hidden layer with fixed random weights; only the hidden->output
    weights are learned, one batch at a time, by `SequentialRidge`.

    - train(X, Y): X [N, input_dim], Y [N, K] (or [N]); any N >= 1 per call
    - predict(X): [N, K]

    Not thread-safe: `train` calls must be serialized by the caller, and a
    `predict` must not overlap a `train` on the same instance.
    """

    def __init__(self, cfg: ELMConfig):
        self.cfg = cfg
        rng = resolve_rng(cfg.seed)
        self.projection = RandomProjection.generate(int(cfg.input_dim), int(cfg.hidden_width), rng)
        self.activation = resolve_activation(cfg.activation)
        self.engine = SequentialRidge(hidden_width=int(cfg.hidden_width), regularization=float(cfg.regularization))

    @classmethod
    def from_params(cls, **params: Any) -> OSRELM:
        return cls(ELMConfig.from_mapping(params))

    @property
    def input_dim(self) -> int:
        return self.projection.in_dim

    @property
    def hidden_width(self) -> int:
        return self.projection.out_dim

    @property
    def input_weight(self) -> np.ndarray:
        return self.projection.weight

    @property
    def bias(self) -> np.ndarray:
        return self.projection.bias

    @property
    def output_weight(self) -> np.ndarray | None:
        return self.engine.W

    @property
    def stat_matrix(self) -> np.ndarray | None:
        return self.engine.P

    @property
    def phase(self) -> Phase:
        return self.engine.phase

    @property
    def last_update(self) -> Update | None:
        return self.engine.last_update

    def hidden_layer_output(self, X: np.ndarray) -> np.ndarray:
        return self.activation(self.projection.project(X))

    def train(self, X: np.ndarray, Y: np.ndarray) -> OSRELM:
        H = self.hidden_layer_output(X)
        self.engine.partial_fit(H, Y)
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        if not self.engine.is_trained:
            raise ModelNotTrained("train must be called at least once before predict")
        return self.engine.predict(self.hidden_layer_output(X))
