from __future__ import annotations

import numpy as np
import pytest

from oselm.core.config import ELMConfig
from oselm.core.elm import OSRELM
from oselm.core.errors import DimensionMismatch, MissingRequiredConfig, ModelNotTrained
from oselm.core.sequential import Phase, Update


def _data(seed: int, n: int, d: int, k: int = 2) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    X = rng.uniform(-1.0, 1.0, size=(n, d))
    Y = np.stack([np.sin(X.sum(axis=1)), X[:, 0] * X[:, -1]], axis=1)[:, :k]
    return X, Y


def _rel(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(a - b) / (np.linalg.norm(b) + 1e-12))


def test_same_seed_gives_identical_projection():
    cfg = ELMConfig(input_dim=5, hidden_width=30, seed=123)
    a = OSRELM(cfg)
    b = OSRELM(cfg)
    assert np.array_equal(a.input_weight, b.input_weight)
    assert np.array_equal(a.bias, b.bias)


def test_end_to_end_regime_sequence():
    cfg = ELMConfig(input_dim=4, hidden_width=10, regularization=1000.0, activation="sigmoid", seed=42)
    model = OSRELM(cfg)
    X, Y = _data(0, 14, 4)

    model.train(X[:5], Y[:5])
    assert model.last_update is Update.COLD_DUAL
    assert model.phase is Phase.GROWTH
    assert model.stat_matrix.shape == (5, 5)

    model.train(X[5:8], Y[5:8])
    assert model.last_update is Update.GROW
    assert model.stat_matrix.shape == (8, 8)

    model.train(X[8:12], Y[8:12])
    assert model.last_update is Update.SATURATE
    assert model.phase is Phase.SATURATED

    model.train(X[12:13], Y[12:13])
    assert model.last_update is Update.RLS
    assert model.phase is Phase.SATURATED
    assert model.stat_matrix.shape == (10, 10)

    y_hat = model.predict(X[13:14])
    assert y_hat.shape == (1, 2)
    assert np.all(np.isfinite(y_hat))


def test_streamed_training_matches_single_batch():
    cfg = ELMConfig(input_dim=3, hidden_width=15, regularization=1.0, seed=7)
    X, Y = _data(1, 80, 3)

    full = OSRELM(cfg).train(X, Y)

    streamed = OSRELM(cfg)
    for start in range(0, 80, 6):
        streamed.train(X[start : start + 6], Y[start : start + 6])

    assert streamed.phase is Phase.SATURATED
    assert _rel(streamed.output_weight, full.output_weight) < 1e-8


def test_two_dual_batches_match_one_dual_batch():
    cfg = ELMConfig(input_dim=3, hidden_width=40, regularization=1.0, seed=3)
    X, Y = _data(2, 20, 3)

    full = OSRELM(cfg).train(X, Y)
    assert full.last_update is Update.COLD_DUAL

    split = OSRELM(cfg).train(X[:9], Y[:9]).train(X[9:], Y[9:])
    assert split.last_update is Update.GROW
    assert _rel(split.output_weight, full.output_weight) < 1e-8
    assert np.allclose(split.stat_matrix, full.stat_matrix, atol=1e-10)


def test_batch_of_exactly_hidden_width_saturates_directly():
    model = OSRELM(ELMConfig(input_dim=2, hidden_width=8, seed=0))
    X, Y = _data(3, 8, 2, k=1)
    model.train(X, Y)
    assert model.last_update is Update.COLD_PRIMAL
    assert model.phase is Phase.SATURATED
    assert model.stat_matrix.shape == (8, 8)


def test_single_row_stream_grows_until_tipping_row():
    L = 7
    model = OSRELM(ELMConfig(input_dim=3, hidden_width=L, seed=11))
    X, Y = _data(4, L, 3)
    updates = []
    for i in range(L):
        model.train(X[i : i + 1], Y[i : i + 1])
        updates.append(model.last_update)
    assert updates == [Update.COLD_DUAL] + [Update.GROW] * (L - 2) + [Update.SATURATE]


def test_training_twice_on_same_batch_is_cumulative():
    cfg = ELMConfig(input_dim=3, hidden_width=12, regularization=1.0, seed=5)
    X, Y = _data(5, 20, 3)

    once = OSRELM(cfg).train(X, Y)
    twice = OSRELM(cfg).train(X, Y).train(X, Y)
    doubled = OSRELM(cfg).train(np.concatenate([X, X]), np.concatenate([Y, Y]))

    assert not np.allclose(twice.output_weight, once.output_weight)
    assert _rel(twice.output_weight, doubled.output_weight) < 1e-8
    assert twice.engine.samples_seen == 40


def test_predict_does_not_mutate_state():
    model = OSRELM(ELMConfig(input_dim=3, hidden_width=12, seed=5))
    X, Y = _data(6, 20, 3)
    model.train(X, Y)
    W = model.output_weight.copy()
    P = model.stat_matrix.copy()
    model.predict(X)
    assert np.array_equal(model.output_weight, W)
    assert np.array_equal(model.stat_matrix, P)


def test_learns_smooth_function():
    model = OSRELM(ELMConfig(input_dim=2, hidden_width=60, regularization=1000.0, seed=0))
    X, Y = _data(7, 600, 2, k=1)
    for start in range(0, 500, 25):
        model.train(X[start : start + 25], Y[start : start + 25])
    err = float(np.mean((model.predict(X[500:]) - Y[500:]) ** 2))
    assert err < 0.1 * float(np.var(Y[500:]))


def test_predict_before_train_raises():
    model = OSRELM(ELMConfig(input_dim=3, hidden_width=5, seed=0))
    with pytest.raises(ModelNotTrained):
        model.predict(np.zeros((1, 3)))


def test_dimension_errors():
    model = OSRELM(ELMConfig(input_dim=3, hidden_width=5, seed=0))
    with pytest.raises(DimensionMismatch):
        model.train(np.zeros((4, 3)), np.zeros((3, 1)))
    with pytest.raises(DimensionMismatch):
        model.train(np.zeros((4, 2)), np.zeros((4, 1)))
    with pytest.raises(DimensionMismatch):
        model.train(np.zeros(3), np.zeros(1))

    model.train(np.zeros((4, 3)), np.zeros((4, 2)))
    with pytest.raises(DimensionMismatch):
        model.train(np.zeros((2, 3)), np.zeros((2, 3)))
    with pytest.raises(DimensionMismatch):
        model.predict(np.zeros((1, 4)))


def test_from_params_and_custom_activation():
    model = OSRELM.from_params(input_dim=2, hidden_width=6, activation=np.tanh, seed=1)
    X, Y = _data(8, 10, 2, k=1)
    model.train(X, Y)
    assert model.activation is np.tanh
    assert np.allclose(model.hidden_layer_output(X), np.tanh(X @ model.input_weight + model.bias))

    with pytest.raises(MissingRequiredConfig):
        OSRELM.from_params(hidden_width=6)
