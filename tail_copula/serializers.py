"""
Serialize a TailRiskAnalysisResult into a JSON-safe dict for the
presentation layer (tables and heatmaps).

NaN / Inf become None, dates become ISO strings, floats are rounded.
"""

import math

import numpy as np

FLOAT_DIGITS = 6


def _num(value, digits=FLOAT_DIGITS):
    value = float(value)
    if not math.isfinite(value):
        return None
    return round(value, digits)


def _matrix(values):
    return [[_num(v) for v in row] for row in np.asarray(values)]


def _vector(values):
    return [_num(v) for v in np.asarray(values)]


def _iso(day):
    return day.isoformat() if day is not None else None


def _pair(pair_risk):
    return {"value": _num(pair_risk.value), "pair": list(pair_risk.pair)}


def serialize_result(result):
    """Build the full snapshot handed to the presentation layer."""
    a = result.analytics
    return {
        "strategies": list(result.strategies),
        "tradingDaysUsed": result.trading_days_used,
        "dateRange": {
            "start": _iso(result.date_range_start),
            "end": _iso(result.date_range_end),
        },
        "tailThreshold": _num(result.tail_threshold),
        "varianceThreshold": _num(result.variance_threshold),
        "copulaCorrelationMatrix": _matrix(result.copula_correlation_matrix),
        "pearsonCorrelationMatrix": _matrix(result.pearson_correlation_matrix),
        "jointTailRiskMatrix": _matrix(result.joint_tail_risk_matrix),
        "insufficientDataPairs": result.insufficient_data_pairs,
        "sharedTradingDays": np.asarray(result.shared_trading_days).astype(int).tolist(),
        "eigenvalues": _vector(result.eigenvalues),
        "eigenvectors": _matrix(result.eigenvectors),
        "explainedVariance": _vector(result.explained_variance),
        "effectiveFactors": result.effective_factors,
        "analytics": {
            "highestJointTailRisk": _pair(a.highest_joint_tail_risk),
            "lowestJointTailRisk": _pair(a.lowest_joint_tail_risk),
            "averageJointTailRisk": _num(a.average_joint_tail_risk),
            "highRiskPairsPct": _num(a.high_risk_pairs_pct),
        },
        "marginalContributions": [
            {
                "strategy": c.strategy,
                "tailRiskContribution": _num(c.tail_risk_contribution),
                "concentrationScore": _num(c.concentration_score),
                "avgTailDependence": _num(c.avg_tail_dependence),
            }
            for c in result.marginal_contributions
        ],
        "computedAt": result.computed_at.isoformat(),
        "computationTimeMs": _num(result.computation_time_ms, 3),
        "isEmpty": result.is_empty,
    }
