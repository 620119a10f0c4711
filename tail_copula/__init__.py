"""
tail_copula — tail-risk dependence between independently run strategies.

Measures how likely strategies are to suffer extreme losses together even
when their everyday correlation looks low.

Components:
- Return Aggregator: trades -> per-strategy daily returns on a union calendar
- Marginal Normalizer: rank-based PIT to standard normal scores
- Dependence Estimator: Kendall tau-b -> Pearson-equivalent copula matrix
- Factor Analyzer: eigen-decomposition, effective independent factors
- Joint Tail-Risk Estimator: P(j in tail | i in tail) on shared trading days
- Analytics & Attribution: pair extremes, marginal contribution ranking
"""

from .config import (
    Normalization,
    DateBasis,
    TailRiskOptions,
)
from .trades import Trade, normalize_return, filter_trades
from .aggregation import AlignedStrategyReturns, aggregate_and_align_returns
from .stats import (
    norm_cdf,
    norm_quantile,
    get_ranks,
    probability_integral_transform,
    kendall_tau,
    kendall_tau_to_pearson,
    pearson_correlation,
)
from .dependence import copula_correlation_matrix, pearson_correlation_matrix
from .factors import (
    DecompositionError,
    EigenDecomposition,
    decompose,
    perform_eigen_analysis,
)
from .joint_tail import JointTailRiskResult, estimate_joint_tail_risk, min_tail_observations
from .analytics import (
    PairRisk,
    TailRiskAnalytics,
    MarginalContribution,
    calculate_tail_risk_analytics,
    calculate_marginal_contributions,
)
from .engine import TailRiskAnalysisResult, TailRiskAnalyzer, perform_tail_risk_analysis
from .serializers import serialize_result

__all__ = [
    # Config
    "Normalization", "DateBasis", "TailRiskOptions",
    # Trades / aggregation
    "Trade", "normalize_return", "filter_trades",
    "AlignedStrategyReturns", "aggregate_and_align_returns",
    # Statistics
    "norm_cdf", "norm_quantile", "get_ranks", "probability_integral_transform",
    "kendall_tau", "kendall_tau_to_pearson", "pearson_correlation",
    # Dependence / factors
    "copula_correlation_matrix", "pearson_correlation_matrix",
    "DecompositionError", "EigenDecomposition", "decompose", "perform_eigen_analysis",
    # Joint tail risk
    "JointTailRiskResult", "estimate_joint_tail_risk", "min_tail_observations",
    # Analytics
    "PairRisk", "TailRiskAnalytics", "MarginalContribution",
    "calculate_tail_risk_analytics", "calculate_marginal_contributions",
    # Engine
    "TailRiskAnalysisResult", "TailRiskAnalyzer", "perform_tail_risk_analysis",
    "serialize_result",
]
