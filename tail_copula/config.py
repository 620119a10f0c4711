"""
Configuration — analysis options, modes and tunable constants.

Every option is optional. ``TailRiskOptions.resolved()`` produces the copy the
engine actually runs with: thresholds clamped to their documented ranges and
string modes coerced to enums.

Classes:
    Normalization    — raw P/L, P/L / margin, P/L / notional
    DateBasis        — which trade date anchors the calendar
    TailRiskOptions  — option bundle with defaults
"""

import math
from dataclasses import dataclass, fields, replace
from datetime import date
from enum import Enum
from typing import Optional


# ── Defaults ─────────────────────────────────────────────────────────────

DEFAULT_TAIL_THRESHOLD = 0.10
DEFAULT_MIN_TRADING_DAYS = 30
DEFAULT_VARIANCE_THRESHOLD = 0.80

TAIL_THRESHOLD_BOUNDS = (0.01, 0.99)
VARIANCE_THRESHOLD_BOUNDS = (0.5, 0.99)

# Pair-level score above which a pair counts as "high dependence"
HIGH_DEPENDENCE_THRESHOLD = 0.5

# Marginal contribution blend
CONCENTRATION_WEIGHT = 0.5
DEPENDENCE_WEIGHT = 0.5

# Tunable heuristic: max(floor, ceil(fraction * tail_threshold * shared_days))
MIN_TAIL_OBSERVATIONS_FLOOR = 5
TAIL_OBSERVATION_FRACTION = 0.1


class Normalization(Enum):
    RAW = "raw"
    MARGIN = "margin"
    NOTIONAL = "notional"


class DateBasis(Enum):
    OPENED = "opened"
    CLOSED = "closed"


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


# Accepted camelCase spellings for from_dict()
_CAMEL_KEYS = {
    "tailThreshold": "tail_threshold",
    "minTradingDays": "min_trading_days",
    "dateBasis": "date_basis",
    "tickerFilter": "ticker_filter",
    "strategyFilter": "strategy_filter",
    "dateRange": "date_range",
    "dateFrom": "date_from",
    "dateTo": "date_to",
    "varianceThreshold": "variance_threshold",
}


@dataclass(frozen=True)
class TailRiskOptions:
    """
    Options for a tail-risk analysis run.

    Parameters
    ----------
    tail_threshold     : float — percentile defining "tail" days (0.10 = worst decile)
    min_trading_days   : int — calendar days required before analysing
    normalization      : Normalization or str — return scaling mode
    date_basis         : DateBasis or str — trade date used for the calendar
    ticker_filter      : str or None — case-insensitive substring of the trade legs
    strategy_filter    : tuple[str] or None — restrict to these strategies
    date_from, date_to : date or None — inclusive calendar bounds
    variance_threshold : float — cumulative variance defining effective factors
    """
    tail_threshold: float = DEFAULT_TAIL_THRESHOLD
    min_trading_days: int = DEFAULT_MIN_TRADING_DAYS
    normalization: Normalization = Normalization.RAW
    date_basis: DateBasis = DateBasis.OPENED
    ticker_filter: Optional[str] = None
    strategy_filter: Optional[tuple] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD

    def resolved(self):
        """Return a copy with thresholds clamped and modes coerced to enums."""
        tail = float(self.tail_threshold)
        if math.isnan(tail):
            tail = DEFAULT_TAIL_THRESHOLD
        variance = float(self.variance_threshold)
        if math.isnan(variance):
            variance = DEFAULT_VARIANCE_THRESHOLD

        strategies = self.strategy_filter
        if strategies is not None:
            strategies = _as_names(strategies) or None

        return replace(
            self,
            tail_threshold=clamp(tail, *TAIL_THRESHOLD_BOUNDS),
            variance_threshold=clamp(variance, *VARIANCE_THRESHOLD_BOUNDS),
            min_trading_days=max(0, int(self.min_trading_days)),
            normalization=Normalization(self.normalization),
            date_basis=DateBasis(self.date_basis),
            ticker_filter=self.ticker_filter or None,
            strategy_filter=strategies,
            date_from=_as_date(self.date_from),
            date_to=_as_date(self.date_to),
        )

    @classmethod
    def from_dict(cls, mapping):
        """
        Build options from a plain mapping.

        Accepts snake_case field names or the camelCase keys used by the
        presentation layer. ``dateRange`` may be a dict with ``from``/``to``.
        ``None`` values fall back to defaults; unknown keys raise ValueError.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in mapping.items():
            if value is None:
                continue
            name = _CAMEL_KEYS.get(key, key)
            if name == "date_range":
                if value.get("from") is not None:
                    kwargs["date_from"] = value["from"]
                if value.get("to") is not None:
                    kwargs["date_to"] = value["to"]
                continue
            if name not in known:
                raise ValueError(f"Unknown tail-risk option: {key!r}")
            if name == "strategy_filter":
                value = _as_names(value)
            kwargs[name] = value
        return cls(**kwargs)


def _as_date(value):
    if value is None or type(value) is date:
        return value
    if hasattr(value, "date"):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Expected a date, got {type(value).__name__}")


def _as_names(value):
    if isinstance(value, str):
        raise TypeError(f"strategy_filter expects a sequence of names, got str {value!r}")
    return tuple(value)
