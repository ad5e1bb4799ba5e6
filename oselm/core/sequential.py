from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

import numpy as np

from oselm.core.errors import DimensionMismatch, ModelNotTrained
from oselm.core.random_projection import check_dim

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    UNINITIALIZED = "uninitialized"
    # P is the k x k dual statistic (H_buf H_buf^T + I/C)^-1, k < hidden_width.
    GROWTH = "growth"
    # P is the L x L primal statistic (I/C + H^T H)^-1. Absorbing.
    SATURATED = "saturated"


class Update(enum.Enum):
    """Which update rule the most recent batch went through."""

    COLD_DUAL = "cold_dual"
    COLD_PRIMAL = "cold_primal"
    GROW = "grow"
    SATURATE = "saturate"
    RLS = "rls"


@dataclass(slots=True)
class SequentialRidge:
    """Sequential regularized least squares on hidden-layer outputs.

    Learns W such that T ~= H @ W, minimizing ||H W - T||^2 + ||W||^2 / C
    over every batch seen so far, without re-solving from scratch.

    - H: [N, L]  (L = hidden_width)
    - T: [N, K]
    - W: [L, K] once saturated, computed from the buffered rows before that

    While fewer than L samples have arrived the statistic is kept in dual
    form (size = samples seen) and grown blockwise with the Schur
    complement; the batch that brings the total to L or more is solved in
    primal form, after which every batch is a block RLS (Woodbury) update.
    All inversions go through a pseudo-inverse so rank-deficient batches
    never raise.

    References:
      Shao & Er, "An online sequential learning algorithm for regularized
      Extreme Learning Machine", Neurocomputing 173 (2016) 778-788.
    """

    hidden_width: int
    regularization: float = 1000.0
    dtype: type = np.float64

    phase: Phase = field(init=False, default=Phase.UNINITIALIZED)
    last_update: Update | None = field(init=False, default=None)
    samples_seen: int = field(init=False, default=0)
    out_dim: int | None = field(init=False, default=None)

    P: np.ndarray | None = field(init=False, default=None, repr=False)
    W: np.ndarray | None = field(init=False, default=None, repr=False)
    H_buf: np.ndarray | None = field(init=False, default=None, repr=False)
    T_buf: np.ndarray | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        self.hidden_width = check_dim("hidden_width", self.hidden_width)
        if not float(self.regularization) > 0.0:
            raise ValueError("regularization must be > 0")

    @property
    def stat_dim(self) -> int:
        return 0 if self.P is None else int(self.P.shape[0])

    @property
    def is_trained(self) -> bool:
        return self.W is not None

    def _ridge_eye(self, n: int) -> np.ndarray:
        return np.eye(n, dtype=self.dtype) / float(self.regularization)

    def _check_batch(self, H: np.ndarray, T: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        H = np.asarray(H, dtype=self.dtype)
        if H.ndim != 2 or H.shape[1] != self.hidden_width:
            raise DimensionMismatch(f"H must be [N, {self.hidden_width}], got {H.shape}")

        T = np.asarray(T, dtype=self.dtype)
        if T.ndim == 1:
            T = T.reshape(-1, 1)
        if T.ndim != 2:
            raise DimensionMismatch(f"targets must be [N, K], got {T.shape}")
        if T.shape[0] != H.shape[0]:
            raise DimensionMismatch(f"targets have {T.shape[0]} rows, inputs have {H.shape[0]}")
        if self.out_dim is not None and T.shape[1] != self.out_dim:
            raise DimensionMismatch(f"targets must keep {self.out_dim} columns, got {T.shape[1]}")
        return H, T

    def partial_fit(self, H: np.ndarray, T: np.ndarray) -> SequentialRidge:
        """Absorb one batch. Batches must arrive in order; the update is cumulative."""
        H, T = self._check_batch(H, T)
        N = int(H.shape[0])
        if N == 0:
            return self

        L = self.hidden_width
        prev_phase = self.phase
        if self.phase is Phase.UNINITIALIZED:
            if N < L:
                self._cold_dual(H, T)
            else:
                self._solve_primal(H, T, Update.COLD_PRIMAL)
        elif self.phase is Phase.GROWTH:
            assert self.H_buf is not None and self.T_buf is not None
            if self.stat_dim + N >= L:
                H_all = np.concatenate([self.H_buf, H], axis=0)
                T_all = np.concatenate([self.T_buf, T], axis=0)
                self._solve_primal(H_all, T_all, Update.SATURATE)
            else:
                self._grow(H, T)
        else:
            self._rls(H, T)

        self.out_dim = int(T.shape[1])
        self.samples_seen += N
        logger.debug(
            "batch N=%d via %s: phase=%s stat_dim=%d seen=%d",
            N,
            self.last_update.value if self.last_update else None,
            self.phase.value,
            self.stat_dim,
            self.samples_seen,
        )
        if self.phase is not prev_phase:
            logger.debug("phase %s -> %s after %d samples", prev_phase.value, self.phase.value, self.samples_seen)
        return self

    def _cold_dual(self, H: np.ndarray, T: np.ndarray) -> None:
        N = int(H.shape[0])
        P = np.linalg.pinv(H @ H.T + self._ridge_eye(N))
        self.H_buf = H.copy()
        self.T_buf = T.copy()
        self.P = P
        self.W = H.T @ (P @ T)
        self.phase = Phase.GROWTH
        self.last_update = Update.COLD_DUAL

    def _solve_primal(self, H: np.ndarray, T: np.ndarray, how: Update) -> None:
        P = np.linalg.pinv(self._ridge_eye(self.hidden_width) + H.T @ H)
        self.P = P
        self.W = P @ (H.T @ T)
        self.H_buf = None
        self.T_buf = None
        self.phase = Phase.SATURATED
        self.last_update = how

    def _grow(self, H: np.ndarray, T: np.ndarray) -> None:
        assert self.P is not None and self.H_buf is not None and self.T_buf is not None
        N = int(H.shape[0])
        P_prev = self.P
        H_prev = self.H_buf

        HHp = H @ H_prev.T  # [N, k]
        PHpHt = P_prev @ HHp.T  # [k, N]

        # Schur complement of the old Gram block in the enlarged Gram matrix.
        S = (H @ H.T + self._ridge_eye(N)) - HHp @ PHpHt  # [N, N]
        inv_S = np.linalg.pinv(S)

        top_right = -PHpHt @ inv_S  # [k, N]
        bottom_left = -inv_S @ HHp @ P_prev  # [N, k]
        top_left = P_prev - PHpHt @ bottom_left  # [k, k]

        self.P = np.block([[top_left, top_right], [bottom_left, inv_S]])
        self.H_buf = np.concatenate([H_prev, H], axis=0)
        self.T_buf = np.concatenate([self.T_buf, T], axis=0)
        self.W = self.H_buf.T @ (self.P @ self.T_buf)
        self.last_update = Update.GROW

    def _rls(self, H: np.ndarray, T: np.ndarray) -> None:
        assert self.P is not None and self.W is not None
        N = int(H.shape[0])

        PHt = self.P @ H.T  # [L, N]
        S = np.eye(N, dtype=self.dtype) + H @ PHt  # [N, N]
        # P <- P - P H^T (I + H P H^T)^-1 H P
        self.P = self.P - PHt @ (np.linalg.pinv(S) @ (H @ self.P))
        # W <- W + P H^T (T - H W)
        self.W = self.W + self.P @ (H.T @ (T - H @ self.W))
        self.last_update = Update.RLS

    def predict(self, H: np.ndarray) -> np.ndarray:
        if self.W is None:
            raise ModelNotTrained("call partial_fit before predict")
        H = np.asarray(H, dtype=self.dtype)
        if H.ndim != 2 or H.shape[1] != self.hidden_width:
            raise DimensionMismatch(f"H must be [N, {self.hidden_width}], got {H.shape}")
        return H @ self.W
