"""
Dependence Estimator — copula correlation matrix.

Kendall's tau-b on PIT-transformed series, mapped to a Pearson-equivalent
via sin(pi * tau / 2). Empirical Pearson on the raw aligned returns is
provided for comparison with the everyday correlation.
"""

import numpy as np

from .stats import kendall_tau, kendall_tau_to_pearson, pearson_correlation


def _pairwise_matrix(series, measure):
    series = np.asarray(series, dtype=np.float64)
    n = len(series)
    matrix = np.eye(n)
    for i in range(n):
        for j in range(i + 1, n):
            matrix[i, j] = matrix[j, i] = measure(series[i], series[j])
    return matrix


def copula_correlation_matrix(transformed_returns):
    """
    Symmetric, unit-diagonal copula correlation matrix.

    Parameters
    ----------
    transformed_returns : array-like [n_strategies, n_days] — PIT scores

    Returns
    -------
    np.ndarray [n_strategies, n_strategies]
    """
    return _pairwise_matrix(
        transformed_returns,
        lambda x, y: kendall_tau_to_pearson(kendall_tau(x, y)),
    )


def pearson_correlation_matrix(returns):
    """Plain Pearson correlation matrix of untransformed returns."""
    return _pairwise_matrix(returns, pearson_correlation)
