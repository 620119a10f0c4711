"""
Analytics & Attribution — summaries of the joint tail matrix and each
strategy's marginal contribution to portfolio tail risk.

Pair scores average the two directional entries of the joint matrix. Pairs
with a NaN in either direction have insufficient data and are left out of
every aggregate.
"""

import math
from dataclasses import dataclass

import numpy as np

from .config import CONCENTRATION_WEIGHT, DEPENDENCE_WEIGHT, HIGH_DEPENDENCE_THRESHOLD


@dataclass(frozen=True)
class PairRisk:
    """A pair-level tail dependence score."""
    value: float
    pair: tuple


NO_PAIR = PairRisk(value=0.0, pair=("", ""))


@dataclass(frozen=True)
class TailRiskAnalytics:
    """Quick analytics from the joint tail-risk matrix."""
    highest_joint_tail_risk: PairRisk
    lowest_joint_tail_risk: PairRisk
    average_joint_tail_risk: float
    high_risk_pairs_pct: float  # fraction in [0, 1] of valid pairs above 0.5

    @classmethod
    def empty(cls):
        return cls(
            highest_joint_tail_risk=NO_PAIR,
            lowest_joint_tail_risk=NO_PAIR,
            average_joint_tail_risk=0.0,
            high_risk_pairs_pct=0.0,
        )


@dataclass(frozen=True)
class MarginalContribution:
    """
    One strategy's share of responsibility for portfolio tail risk.

    tail_risk_contribution is a 0-100 diagnostic score, not a partition:
    contributions across strategies need not sum to 100.
    """
    strategy: str
    tail_risk_contribution: float
    concentration_score: float   # |first-factor loading| / sum of |loadings|
    avg_tail_dependence: float


def pair_score(joint_matrix, i, j):
    """Average of both directions, or None if either is NaN."""
    forward = joint_matrix[i][j]
    backward = joint_matrix[j][i]
    if math.isnan(forward) or math.isnan(backward):
        return None
    return (forward + backward) / 2.0


def calculate_tail_risk_analytics(joint_matrix, strategies,
                                  high_threshold=HIGH_DEPENDENCE_THRESHOLD):
    """
    Highest / lowest / mean pair score and the share of high-dependence pairs.

    Ties keep the first pair found in (i, j) upper-triangle order.
    """
    n = len(strategies)
    if n < 2:
        return TailRiskAnalytics.empty()

    highest = lowest = None
    total = 0.0
    valid = 0
    high = 0

    for i in range(n):
        for j in range(i + 1, n):
            value = pair_score(joint_matrix, i, j)
            if value is None:
                continue
            total += value
            valid += 1
            if highest is None or value > highest.value:
                highest = PairRisk(value=value, pair=(strategies[i], strategies[j]))
            if lowest is None or value < lowest.value:
                lowest = PairRisk(value=value, pair=(strategies[i], strategies[j]))
            if value > high_threshold:
                high += 1

    if valid == 0:
        return TailRiskAnalytics.empty()

    return TailRiskAnalytics(
        highest_joint_tail_risk=highest,
        lowest_joint_tail_risk=lowest,
        average_joint_tail_risk=total / valid,
        high_risk_pairs_pct=high / valid,
    )


def calculate_marginal_contributions(joint_matrix, eigenvectors, strategies,
                                     concentration_weight=CONCENTRATION_WEIGHT,
                                     dependence_weight=DEPENDENCE_WEIGHT):
    """
    Rank strategies by their contribution to tail risk.

    Blends each strategy's concentration on the dominant factor with its
    average pairwise tail dependence, scaled to 0-100.

    Parameters
    ----------
    joint_matrix  : array-like [n, n]
    eigenvectors  : array-like [n, n] — rows, dominant factor first
    strategies    : sequence of str

    Returns
    -------
    tuple[MarginalContribution], highest contribution first
    """
    n = len(strategies)
    if n == 0 or len(eigenvectors) == 0:
        return ()

    loadings = np.abs(np.asarray(eigenvectors[0], dtype=np.float64))
    loading_sum = float(loadings.sum())

    contributions = []
    for i, strategy in enumerate(strategies):
        concentration = float(loadings[i]) / loading_sum if loading_sum > 0 else 1.0 / n

        scores = [pair_score(joint_matrix, i, j) for j in range(n) if j != i]
        scores = [s for s in scores if s is not None]
        avg_dependence = sum(scores) / len(scores) if scores else 0.0

        contributions.append(MarginalContribution(
            strategy=strategy,
            tail_risk_contribution=(concentration * concentration_weight
                                    + avg_dependence * dependence_weight) * 100.0,
            concentration_score=concentration,
            avg_tail_dependence=avg_dependence,
        ))

    contributions.sort(key=lambda c: c.tail_risk_contribution, reverse=True)
    return tuple(contributions)


def equal_contributions(strategies):
    """Uniform 100/N attribution used when no analysis could run."""
    n = max(len(strategies), 1)
    return tuple(
        MarginalContribution(
            strategy=s,
            tail_risk_contribution=100.0 / n,
            concentration_score=1.0 / n,
            avg_tail_dependence=0.0,
        )
        for s in strategies
    )
