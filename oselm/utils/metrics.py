from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class LatencySummary:
    n: int
    p50_ms: float
    p95_ms: float
    p99_ms: float
    mean_ms: float
    max_ms: float


def summarize_latencies_ns(latencies_ns: list[int]) -> LatencySummary:
    if not latencies_ns:
        return LatencySummary(n=0, p50_ms=0.0, p95_ms=0.0, p99_ms=0.0, mean_ms=0.0, max_ms=0.0)

    ms = np.asarray(latencies_ns, dtype=np.float64) / 1e6
    p50, p95, p99 = np.quantile(ms, [0.50, 0.95, 0.99]).tolist()
    return LatencySummary(
        n=int(ms.size),
        p50_ms=float(p50),
        p95_ms=float(p95),
        p99_ms=float(p99),
        mean_ms=float(np.mean(ms)),
        max_ms=float(np.max(ms)),
    )


def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Root mean squared error over all entries."""
    y_true = np.asarray(y_true, dtype=np.float64)
    y_pred = np.asarray(y_pred, dtype=np.float64).reshape(y_true.shape)
    if y_true.size == 0:
        return 0.0
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def r2_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Coefficient of determination, averaged over output columns.

    Columns with (near) zero variance score 0.
    """
    y_true = np.asarray(y_true, dtype=np.float64)
    if y_true.ndim == 1:
        y_true = y_true.reshape(-1, 1)
    y_pred = np.asarray(y_pred, dtype=np.float64).reshape(y_true.shape)
    if y_true.shape[0] == 0:
        return 0.0

    scores: list[float] = []
    for k in range(y_true.shape[1]):
        var = float(np.var(y_true[:, k]))
        if var <= 1e-12:
            scores.append(0.0)
            continue
        mse = float(np.mean((y_true[:, k] - y_pred[:, k]) ** 2))
        scores.append(1.0 - mse / var)
    return float(np.mean(scores))
