from __future__ import annotations

import logging
from typing import Any

import numpy as np

from oselm.core.activations import Activation, resolve_activation
from oselm.core.config import StackedConfig
from oselm.core.errors import DimensionMismatch, ModelNotTrained
from oselm.core.random_projection import RandomProjection, resolve_rng
from oselm.core.sequential import SequentialRidge

logger = logging.getLogger(__name__)


def principal_directions(beta: np.ndarray, k: int) -> np.ndarray:
    """Top-k principal directions of the rows of beta [L, K] -> [L, k].

    Left singular vectors of beta, i.e. eigenvectors of beta @ beta.T by
    decreasing eigenvalue. For k > rank(beta) the remaining columns are an
    orthonormal completion.
    """
    U, _, _ = np.linalg.svd(np.asarray(beta, dtype=np.float64), full_matrices=True)
    return U[:, :k]


class SELMModule:
    """One module of a stacked ELM.

    The first module has `hidden_width` random nodes. Every later module has
    `hidden_width - reduced_dimension` random nodes, placed after the
    previous module's reduced hidden output, so every hidden layer is
    `hidden_width` wide. Non-final modules keep `pca_matrix` [L, l] to
    reduce their hidden output for the next module.
    """

    def __init__(
        self,
        *,
        input_dim: int,
        hidden_width: int,
        reduced_dimension: int,
        regularization: float,
        activation: Activation,
        is_first_layer: bool,
        is_last_layer: bool,
        rng: np.random.Generator,
    ):
        self.hidden_width = int(hidden_width)
        self.reduced_dimension = int(reduced_dimension)
        self.is_first_layer = bool(is_first_layer)
        self.is_last_layer = bool(is_last_layer)
        self.activation = activation

        n_random = self.hidden_width if self.is_first_layer else self.hidden_width - self.reduced_dimension
        self.projection = RandomProjection.generate(int(input_dim), n_random, rng)
        self.engine = SequentialRidge(hidden_width=self.hidden_width, regularization=float(regularization))
        self.pca_matrix: np.ndarray | None = None

    def hidden_layer_output(self, X: np.ndarray, previous_layer_output: np.ndarray | None = None) -> np.ndarray:
        H = self.activation(self.projection.project(X))
        if self.is_first_layer:
            return H

        if previous_layer_output is None:
            raise DimensionMismatch("previous_layer_output is required after the first module")
        prev = np.asarray(previous_layer_output, dtype=np.float64)
        if prev.shape != (H.shape[0], self.reduced_dimension):
            raise DimensionMismatch(
                f"previous_layer_output must be [{H.shape[0]}, {self.reduced_dimension}], got {prev.shape}"
            )
        return np.concatenate([prev, H], axis=1)

    def train(
        self,
        X: np.ndarray,
        Y: np.ndarray,
        previous_layer_output: np.ndarray | None = None,
    ) -> np.ndarray | None:
        """Fit this module; return the reduced hidden output for the next one (None if last)."""
        H = self.hidden_layer_output(X, previous_layer_output)
        self.engine.partial_fit(H, Y)
        if self.is_last_layer:
            return None

        assert self.engine.W is not None
        self.pca_matrix = principal_directions(self.engine.W, self.reduced_dimension)
        return H @ self.pca_matrix

    def reduce(self, X: np.ndarray, previous_layer_output: np.ndarray | None = None) -> np.ndarray:
        if self.pca_matrix is None:
            raise ModelNotTrained("module has no pca_matrix (untrained or last module)")
        return self.hidden_layer_output(X, previous_layer_output) @ self.pca_matrix

    def predict(self, X: np.ndarray, previous_layer_output: np.ndarray | None = None) -> np.ndarray:
        return self.engine.predict(self.hidden_layer_output(X, previous_layer_output))


class SELM:
    """Stacked Extreme Learning Machine.

    Chains `max_modules` modules; each passes its PCA-reduced hidden output
    to the next, and the last module produces the prediction.

    References:
      Zhou, Huang, Lin, Wang & Soh, "Stacked Extreme Learning Machines",
      IEEE Transactions on Cybernetics (2014).
    """

    def __init__(self, cfg: StackedConfig):
        self.cfg = cfg
        self.rng = resolve_rng(cfg.seed)
        self.activation = resolve_activation(cfg.activation)
        self.modules: list[SELMModule] = []

    @classmethod
    def from_params(cls, **params: Any) -> SELM:
        return cls(StackedConfig.from_mapping(params))

    def _new_module(self, index: int) -> SELMModule:
        cfg = self.cfg
        return SELMModule(
            input_dim=int(cfg.input_dim),
            hidden_width=int(cfg.hidden_width),
            reduced_dimension=int(cfg.reduced_dimension),
            regularization=float(cfg.regularization),
            activation=self.activation,
            is_first_layer=index == 0,
            is_last_layer=index == int(cfg.max_modules) - 1,
            rng=self.rng,
        )

    def train(self, X: np.ndarray, Y: np.ndarray) -> SELM:
        """Build and fit every module on (X, Y). Replaces any previous stack."""
        modules: list[SELMModule] = []
        last_hidden: np.ndarray | None = None
        for i in range(int(self.cfg.max_modules)):
            module = self._new_module(i)
            last_hidden = module.train(X, Y, last_hidden)
            modules.append(module)
            logger.debug("trained module %d/%d", i + 1, int(self.cfg.max_modules))
        self.modules = modules
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        if not self.modules:
            raise ModelNotTrained("train must be called before predict")
        last_hidden: np.ndarray | None = None
        for module in self.modules[:-1]:
            last_hidden = module.reduce(X, last_hidden)
        return self.modules[-1].predict(X, last_hidden)

    def predict_modules(self, X: np.ndarray) -> list[np.ndarray]:
        """Prediction of every module in stack order; the last equals predict(X)."""
        if not self.modules:
            raise ModelNotTrained("train must be called before predict")
        preds: list[np.ndarray] = []
        last_hidden: np.ndarray | None = None
        for module in self.modules:
            preds.append(module.predict(X, last_hidden))
            if not module.is_last_layer:
                last_hidden = module.reduce(X, last_hidden)
        return preds
