from __future__ import annotations

import numpy as np

from oselm.utils.metrics import r2_score, rmse, summarize_latencies_ns


def test_rmse():
    assert rmse(np.array([1.0, 2.0]), np.array([1.0, 2.0])) == 0.0
    assert np.isclose(rmse(np.array([[0.0], [0.0]]), np.array([[3.0], [4.0]])), np.sqrt(12.5))


def test_r2_per_column_average():
    y = np.stack([np.arange(10.0), np.ones(10)], axis=1)
    # perfect first column, constant second column scores 0
    assert np.isclose(r2_score(y, y), 0.5)
    assert np.isclose(r2_score(np.arange(5.0), np.arange(5.0)), 1.0)
    assert r2_score(np.arange(5.0), np.zeros(5)) < 0.0


def test_latency_summary():
    empty = summarize_latencies_ns([])
    assert empty.n == 0 and empty.max_ms == 0.0

    s = summarize_latencies_ns([1_000_000, 2_000_000, 3_000_000])
    assert s.n == 3
    assert np.isclose(s.p50_ms, 2.0)
    assert np.isclose(s.mean_ms, 2.0)
    assert np.isclose(s.max_ms, 3.0)
