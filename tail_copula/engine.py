"""
Tail-Risk Engine — Gaussian-copula tail dependence between strategies.

Two strategies can show a low everyday correlation and still blow up on the
same days. The engine measures that directly:

1. Filter trades and aggregate per-strategy daily returns (union calendar)
2. PIT each strategy's returns to standard normal scores
3. Copula correlation matrix (Kendall tau-b -> sin mapping)
4. Eigen-decomposition -> effective independent factors
5. Empirical joint tail co-probabilities on shared trading days
6. Pair analytics and marginal contribution ranking

Pure batch computation: no I/O, no shared state, deterministic apart from
the timestamp and elapsed-time fields.
"""

import logging
import time
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

import numpy as np

from .aggregation import aggregate_and_align_returns
from .analytics import (
    MarginalContribution,
    TailRiskAnalytics,
    calculate_marginal_contributions,
    calculate_tail_risk_analytics,
    equal_contributions,
)
from .config import TailRiskOptions
from .dependence import copula_correlation_matrix, pearson_correlation_matrix
from .factors import decompose, identity_decomposition, perform_eigen_analysis
from .joint_tail import estimate_joint_tail_risk
from .stats import probability_integral_transform
from .trades import filter_trades

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TailRiskAnalysisResult:
    """Immutable snapshot of one analysis run."""
    strategies: tuple
    trading_days_used: int
    date_range_start: Optional[date]
    date_range_end: Optional[date]
    tail_threshold: float
    variance_threshold: float
    copula_correlation_matrix: np.ndarray
    pearson_correlation_matrix: np.ndarray
    joint_tail_risk_matrix: np.ndarray
    insufficient_data_pairs: int
    shared_trading_days: np.ndarray
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    explained_variance: np.ndarray
    effective_factors: int
    analytics: TailRiskAnalytics
    marginal_contributions: tuple  # MarginalContribution, highest first
    computed_at: datetime
    computation_time_ms: float
    is_empty: bool = False

    @property
    def n_strategies(self):
        return len(self.strategies)

    def contribution_for(self, strategy) -> Optional[MarginalContribution]:
        for c in self.marginal_contributions:
            if c.strategy == strategy:
                return c
        return None


def _frozen(values, dtype=np.float64):
    arr = np.array(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


def _shared_days(traded_mask):
    traded = np.asarray(traded_mask, dtype=np.int64)
    return traded @ traded.T


def create_empty_result(aligned, tail_threshold, variance_threshold, start_time):
    """
    Identity result for inputs too small to analyse.

    Strategies are kept, every matrix is the identity, analytics are zeroed
    and each strategy receives an equal 100/N contribution.
    """
    n = aligned.n_strategies
    identity = identity_decomposition(n)
    dates = aligned.dates

    return TailRiskAnalysisResult(
        strategies=tuple(aligned.strategies),
        trading_days_used=len(dates),
        date_range_start=dates[0] if dates else None,
        date_range_end=dates[-1] if dates else None,
        tail_threshold=tail_threshold,
        variance_threshold=variance_threshold,
        copula_correlation_matrix=_frozen(np.eye(n)),
        pearson_correlation_matrix=_frozen(np.eye(n)),
        joint_tail_risk_matrix=_frozen(np.eye(n)),
        insufficient_data_pairs=0,
        shared_trading_days=_frozen(_shared_days(aligned.traded_mask), dtype=np.int64),
        eigenvalues=_frozen(identity.eigenvalues),
        eigenvectors=_frozen(identity.eigenvectors),
        explained_variance=_frozen(identity.explained_variance),
        effective_factors=n,
        analytics=TailRiskAnalytics.empty(),
        marginal_contributions=equal_contributions(aligned.strategies),
        computed_at=datetime.now(),
        computation_time_ms=(time.perf_counter() - start_time) * 1000.0,
        is_empty=True,
    )


class TailRiskAnalyzer:
    """
    Runs the full tail-risk pipeline with a fixed set of options.

    Parameters
    ----------
    options    : TailRiskOptions or None — clamped on construction
    decomposer : callable(matrix) -> (eigenvalues, eigenvector rows);
                 any dense symmetric eigensolver
    """

    def __init__(self, options=None, decomposer=decompose):
        self.options = (options or TailRiskOptions()).resolved()
        self.decomposer = decomposer

    def analyze(self, trades):
        """
        Analyse a collection of trades.

        Parameters
        ----------
        trades : iterable of Trade

        Returns
        -------
        TailRiskAnalysisResult
        """
        start = time.perf_counter()
        opts = self.options

        filtered = filter_trades(trades, opts)
        aligned = aggregate_and_align_returns(filtered, opts.normalization, opts.date_basis)

        if aligned.n_strategies < 2:
            logger.info(f"Tail risk: {aligned.n_strategies} strategies, need at least 2")
            return create_empty_result(aligned, opts.tail_threshold,
                                       opts.variance_threshold, start)
        if aligned.n_days < opts.min_trading_days:
            logger.info(f"Tail risk: {aligned.n_days} trading days, "
                        f"need at least {opts.min_trading_days}")
            return create_empty_result(aligned, opts.tail_threshold,
                                       opts.variance_threshold, start)

        transformed = np.array([probability_integral_transform(r) for r in aligned.returns])

        copula = copula_correlation_matrix(transformed)
        pearson = pearson_correlation_matrix(aligned.returns)
        eigen = perform_eigen_analysis(copula, opts.variance_threshold,
                                       decomposer=self.decomposer)
        joint = estimate_joint_tail_risk(transformed, aligned.traded_mask,
                                         opts.tail_threshold)

        analytics = calculate_tail_risk_analytics(joint.matrix, aligned.strategies)
        contributions = calculate_marginal_contributions(
            joint.matrix, eigen.eigenvectors, aligned.strategies,
        )

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            f"Tail risk: {aligned.n_strategies} strategies over {aligned.n_days} days, "
            f"{eigen.effective_factors} effective factors, "
            f"{joint.insufficient_pairs} insufficient pairs ({elapsed_ms:.1f} ms)"
        )

        return TailRiskAnalysisResult(
            strategies=tuple(aligned.strategies),
            trading_days_used=aligned.n_days,
            date_range_start=aligned.dates[0],
            date_range_end=aligned.dates[-1],
            tail_threshold=opts.tail_threshold,
            variance_threshold=opts.variance_threshold,
            copula_correlation_matrix=_frozen(copula),
            pearson_correlation_matrix=_frozen(pearson),
            joint_tail_risk_matrix=_frozen(joint.matrix),
            insufficient_data_pairs=joint.insufficient_pairs,
            shared_trading_days=_frozen(joint.shared_trading_days, dtype=np.int64),
            eigenvalues=_frozen(eigen.eigenvalues),
            eigenvectors=_frozen(eigen.eigenvectors),
            explained_variance=_frozen(eigen.explained_variance),
            effective_factors=eigen.effective_factors,
            analytics=analytics,
            marginal_contributions=contributions,
            computed_at=datetime.now(),
            computation_time_ms=elapsed_ms,
        )


def perform_tail_risk_analysis(trades, options=None, **overrides):
    """
    Functional entry point.

    Parameters
    ----------
    trades    : iterable of Trade
    options   : TailRiskOptions, dict of options, or None
    overrides : individual TailRiskOptions fields, applied on top

    Returns
    -------
    TailRiskAnalysisResult
    """
    if isinstance(options, dict):
        options = TailRiskOptions.from_dict(options)
    options = options or TailRiskOptions()
    if overrides:
        options = replace(options, **overrides)
    return TailRiskAnalyzer(options).analyze(trades)
