"""
Statistical primitives for copula estimation (no scipy).

    erf / norm_cdf                 — Abramowitz-Stegun 7.1.26 (max error ~1.5e-7)
    norm_quantile                  — rational inverse normal CDF (Beasley-Springer-Moro style)
    get_ranks / ranks_to_uniform   — mid-rank ranking and Hazen plotting positions
    probability_integral_transform — ranks -> uniform -> standard normal
    kendall_tau                    — tie-corrected tau-b
    kendall_tau_to_pearson         — sin(pi * tau / 2)
    pearson_correlation            — plain product-moment correlation
"""

import math

import numpy as np


# ── Normal distribution ──────────────────────────────────────────────────

_ERF_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)
_ERF_P = 0.3275911


def erf(x):
    """Error function, Abramowitz-Stegun 7.1.26 via Horner's method."""
    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)
    a1, a2, a3, a4, a5 = _ERF_A
    t = 1.0 / (1.0 + _ERF_P * x)
    y = 1.0 - ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t * math.exp(-x * x)
    return sign * y


def norm_cdf(x):
    """Standard normal CDF, P(Z <= x)."""
    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))


_Q_A = (-3.969683028665376e1, 2.209460984245205e2, -2.759285104469687e2,
        1.383577518672690e2, -3.066479806614716e1, 2.506628277459239e0)
_Q_B = (-5.447609879822406e1, 1.615858368580409e2, -1.556989798598866e2,
        6.680131188771972e1, -1.328068155288572e1)
_Q_C = (-7.784894002430293e-3, -3.223964580411365e-1, -2.400758277161838e0,
        -2.549732539343734e0, 4.374664141464968e0, 2.938163982698783e0)
_Q_D = (7.784695709041462e-3, 3.224671290700398e-1, 2.445134137142996e0,
        3.754408661907416e0)

P_LOW = 0.02425
P_HIGH = 1.0 - P_LOW


def _tail_quantile(q):
    c, d = _Q_C, _Q_D
    num = ((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]
    den = (((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1.0
    return num / den


def norm_quantile(p):
    """
    Inverse standard normal CDF.

    Rational approximation split into low-tail, central and high-tail
    branches at p = 0.02425 / 0.97575.

    Raises
    ------
    ValueError if p is not strictly inside (0, 1).
    """
    if not 0.0 < p < 1.0:
        raise ValueError(f"norm_quantile: p must be in (0, 1), got {p}")

    if p < P_LOW:
        return _tail_quantile(math.sqrt(-2.0 * math.log(p)))
    if p <= P_HIGH:
        a, b = _Q_A, _Q_B
        q = p - 0.5
        r = q * q
        num = (((((a[0] * r + a[1]) * r + a[2]) * r + a[3]) * r + a[4]) * r + a[5]) * q
        den = ((((b[0] * r + b[1]) * r + b[2]) * r + b[3]) * r + b[4]) * r + 1.0
        return num / den
    return -_tail_quantile(math.sqrt(-2.0 * math.log(1.0 - p)))


# ── Ranks and PIT ────────────────────────────────────────────────────────

def get_ranks(values):
    """
    1-indexed ranks; tied values share the average of their positions.

    >>> get_ranks([10, 20, 20, 30]).tolist()
    [1.0, 2.5, 2.5, 4.0]
    """
    x = np.asarray(values, dtype=np.float64)
    if x.size == 0:
        return np.empty(0)
    _, inverse, counts = np.unique(x, return_inverse=True, return_counts=True)
    upper = np.cumsum(counts)
    mid = upper - (counts - 1) / 2.0
    return mid[inverse.ravel()]


def ranks_to_uniform(ranks, n):
    """Hazen plotting position (rank - 0.5) / n, strictly inside (0, 1)."""
    return (np.asarray(ranks, dtype=np.float64) - 0.5) / n


def probability_integral_transform(values):
    """
    Map a sample to approximately standard normal scores.

    Order-preserving: ranks -> uniform quantiles -> normal quantiles. A
    single observation maps to 0 (the normal median).

    Parameters
    ----------
    values : array-like [n]

    Returns
    -------
    np.ndarray [n]
    """
    x = np.asarray(values, dtype=np.float64)
    n = len(x)
    if n == 0:
        return np.empty(0)
    if n == 1:
        return np.zeros(1)
    uniform = ranks_to_uniform(get_ranks(x), n)
    return np.array([norm_quantile(u) for u in uniform])


# ── Correlation measures ─────────────────────────────────────────────────

def _valid_pair(x, y, min_len):
    return (
        x.ndim == 1
        and x.shape == y.shape
        and len(x) >= min_len
        and bool(np.all(np.isfinite(x)))
        and bool(np.all(np.isfinite(y)))
    )


def kendall_tau(x, y):
    """
    Kendall's tau-b.

    tau_b = (C - D) / sqrt((C + D + T_x) * (C + D + T_y))

    where T_x / T_y count pairs tied only in x / only in y; pairs tied in
    both are ignored. Returns 0.0 for mismatched lengths, fewer than two
    observations, non-finite input or a zero denominator.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if not _valid_pair(x, y, 2):
        return 0.0

    concordant = discordant = tied_x = tied_y = 0
    for i in range(len(x) - 1):
        dx = np.sign(x[i] - x[i + 1:])
        dy = np.sign(y[i] - y[i + 1:])
        prod = dx * dy
        concordant += int(np.count_nonzero(prod > 0))
        discordant += int(np.count_nonzero(prod < 0))
        tied_x += int(np.count_nonzero((dx == 0) & (dy != 0)))
        tied_y += int(np.count_nonzero((dy == 0) & (dx != 0)))

    denominator = math.sqrt(
        (concordant + discordant + tied_x) * (concordant + discordant + tied_y)
    )
    if denominator == 0:
        return 0.0
    tau = (concordant - discordant) / denominator
    return tau if math.isfinite(tau) else 0.0


def kendall_tau_to_pearson(tau):
    """Pearson-equivalent correlation for a bivariate normal: sin(pi * tau / 2)."""
    return math.sin(math.pi * tau / 2.0)


def pearson_correlation(x, y):
    """Product-moment correlation; 0.0 for empty, non-finite or constant input."""
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if not _valid_pair(x, y, 1):
        return 0.0

    dx = x - x.mean()
    dy = y - y.mean()
    denominator = math.sqrt(float(np.dot(dx, dx)) * float(np.dot(dy, dy)))
    if denominator == 0:
        return 0.0
    r = float(np.dot(dx, dy)) / denominator
    return r if math.isfinite(r) else 0.0
