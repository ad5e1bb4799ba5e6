from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from oselm.core.config import ELMConfig
from oselm.core.elm import OSRELM
from oselm.utils.metrics import LatencySummary, r2_score, rmse, summarize_latencies_ns


@dataclass(frozen=True, slots=True)
class StreamExperiment:
    cfg: ELMConfig
    samples: int
    test_samples: int
    batch_size: int
    output_dim: int = 1
    noise: float = 0.0
    seed: int = 0


@dataclass(frozen=True, slots=True)
class StreamResult:
    samples_seen: int
    batches: int
    phase: str
    stat_dim: int
    test_rmse: float
    test_r2: float
    train_latency: LatencySummary
    updates: list[str]


def generate_regression_stream(
    *,
    seed: int,
    samples: int,
    input_dim: int,
    output_dim: int = 1,
    noise: float = 0.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Synthetic nonlinear regression data.

    X ~ U(-1, 1)^input_dim and each target column mixes a sine of a random
    direction with a quadratic term. Deterministic for a given seed.
    """
    if samples <= 0:
        raise ValueError("samples must be > 0")
    if input_dim <= 0 or output_dim <= 0:
        raise ValueError("input_dim and output_dim must be > 0")

    rng = np.random.default_rng(int(seed))
    X = rng.uniform(-1.0, 1.0, size=(int(samples), int(input_dim)))
    A = rng.standard_normal((int(input_dim), int(output_dim))) / np.sqrt(float(input_dim))

    Y = np.sin(np.pi * (X @ A)) + 0.5 * np.mean(X * X, axis=1, keepdims=True)
    if float(noise) > 0.0:
        Y = Y + rng.normal(loc=0.0, scale=float(noise), size=Y.shape)
    return X, Y


def iter_batches(X: np.ndarray, Y: np.ndarray, batch_size: int) -> Iterator[tuple[np.ndarray, np.ndarray]]:
    if batch_size <= 0:
        raise ValueError("batch_size must be > 0")
    if X.shape[0] != Y.shape[0]:
        raise ValueError("X and Y must have same N")
    for start in range(0, int(X.shape[0]), int(batch_size)):
        yield X[start : start + batch_size], Y[start : start + batch_size]


def run_stream_experiment(exp: StreamExperiment) -> StreamResult:
    X, Y = generate_regression_stream(
        seed=exp.seed,
        samples=int(exp.samples) + int(exp.test_samples),
        input_dim=int(exp.cfg.input_dim),
        output_dim=int(exp.output_dim),
        noise=float(exp.noise),
    )
    X_train, Y_train = X[: exp.samples], Y[: exp.samples]
    X_test, Y_test = X[exp.samples :], Y[exp.samples :]

    model = OSRELM(exp.cfg)
    latencies_ns: list[int] = []
    updates: list[str] = []
    for xb, yb in iter_batches(X_train, Y_train, int(exp.batch_size)):
        t0 = time.perf_counter_ns()
        model.train(xb, yb)
        latencies_ns.append(time.perf_counter_ns() - t0)
        assert model.last_update is not None
        updates.append(model.last_update.value)

    if X_test.shape[0] > 0:
        Y_hat = model.predict(X_test)
        test_rmse = rmse(Y_test, Y_hat)
        test_r2 = r2_score(Y_test, Y_hat)
    else:
        test_rmse = float("nan")
        test_r2 = float("nan")

    return StreamResult(
        samples_seen=int(model.engine.samples_seen),
        batches=len(updates),
        phase=model.phase.value,
        stat_dim=int(model.engine.stat_dim),
        test_rmse=test_rmse,
        test_r2=test_r2,
        train_latency=summarize_latencies_ns(latencies_ns),
        updates=updates,
    )
