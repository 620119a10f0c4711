"""
Joint Tail-Risk Estimator — empirical tail co-occurrence probabilities.

Entry [i, j] of the joint matrix is P(j in tail | i in tail), estimated on
the days both strategies actually traded. Zero-padded calendar days never
count: each strategy's tail cutoff is the tail_threshold percentile of its
own trading days only, and a day is "in tail" only if the strategy traded.
Conditional probability is directional, so the matrix is not symmetric.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from .config import MIN_TAIL_OBSERVATIONS_FLOOR, TAIL_OBSERVATION_FRACTION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JointTailRiskResult:
    """Joint tail matrix plus the counts behind it."""
    matrix: np.ndarray               # [n, n], NaN where data is insufficient
    insufficient_pairs: int          # ordered pairs set to NaN
    shared_trading_days: np.ndarray  # [n, n] int, diagonal = own trading days
    tail_cutoffs: np.ndarray         # [n] per-strategy cutoff in PIT units


def min_tail_observations(tail_threshold, shared_trading_days):
    """
    Tail observations required before a conditional estimate is trusted.

    max(5, ceil(0.1 * tail_threshold * shared_trading_days)). Heuristic,
    tunable via the constants in config.
    """
    expected_tail_days = tail_threshold * shared_trading_days
    return max(MIN_TAIL_OBSERVATIONS_FLOOR,
               math.ceil(expected_tail_days * TAIL_OBSERVATION_FRACTION))


def tail_cutoffs(transformed_returns, traded_mask, tail_threshold):
    """
    Per-strategy tail cutoff from traded days only.

    Linear interpolation between order statistics at position
    tail_threshold * (m - 1). A strategy with no trading days gets 0.0.
    """
    transformed_returns = np.asarray(transformed_returns, dtype=np.float64)
    traded_mask = np.asarray(traded_mask, dtype=bool)
    cutoffs = np.zeros(len(transformed_returns))
    for i, (returns, mask) in enumerate(zip(transformed_returns, traded_mask)):
        actual = returns[mask]
        if actual.size:
            cutoffs[i] = np.quantile(actual, tail_threshold)
    return cutoffs


def tail_indicators(transformed_returns, traded_mask, cutoffs):
    """Boolean [n, days]: traded that day and at or below its own cutoff."""
    transformed_returns = np.asarray(transformed_returns, dtype=np.float64)
    traded_mask = np.asarray(traded_mask, dtype=bool)
    return traded_mask & (transformed_returns <= np.asarray(cutoffs)[:, None])


def estimate_joint_tail_risk(transformed_returns, traded_mask, tail_threshold):
    """
    Directional tail co-probability for every ordered strategy pair.

    Parameters
    ----------
    transformed_returns : array-like [n, days] — PIT scores
    traded_mask         : array-like [n, days] bool
    tail_threshold      : float — already clamped to [0.01, 0.99]

    Returns
    -------
    JointTailRiskResult
    """
    transformed_returns = np.asarray(transformed_returns, dtype=np.float64)
    traded_mask = np.asarray(traded_mask, dtype=bool)
    if transformed_returns.shape != traded_mask.shape:
        raise ValueError(
            f"Returns {transformed_returns.shape} and mask {traded_mask.shape} differ in shape"
        )

    n = len(transformed_returns)
    if n == 0 or transformed_returns.shape[1] == 0:
        return JointTailRiskResult(
            matrix=np.empty((0, 0)),
            insufficient_pairs=0,
            shared_trading_days=np.zeros((0, 0), dtype=int),
            tail_cutoffs=np.empty(0),
        )

    cutoffs = tail_cutoffs(transformed_returns, traded_mask, tail_threshold)
    in_tail = tail_indicators(transformed_returns, traded_mask, cutoffs)

    traded = traded_mask.astype(np.int64)
    tail = in_tail.astype(np.int64)
    shared = traded @ traded.T           # both traded
    i_tail_shared = tail @ traded.T      # i in tail, j traded
    both_tail = tail @ tail.T            # both in tail

    matrix = np.eye(n)
    insufficient = 0
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            required = min_tail_observations(tail_threshold, int(shared[i, j]))
            if i_tail_shared[i, j] < required:
                matrix[i, j] = np.nan
                insufficient += 1
            else:
                matrix[i, j] = both_tail[i, j] / i_tail_shared[i, j]

    if insufficient:
        logger.debug(f"{insufficient} of {n * (n - 1)} ordered pairs lack tail observations")

    return JointTailRiskResult(
        matrix=matrix,
        insufficient_pairs=insufficient,
        shared_trading_days=shared,
        tail_cutoffs=cutoffs,
    )
