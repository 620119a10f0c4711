"""
Trades — the trade record consumed by the engine, return normalization and
pre-aggregation filters.

Trades are owned by the ingestion layer; the engine only reads them.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from .config import DateBasis, Normalization

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class Trade:
    """A closed or open trade as recorded in the journal."""
    strategy: Optional[str]
    date_opened: Optional[DateLike]
    pl: float
    date_closed: Optional[DateLike] = None
    margin_req: Optional[float] = None
    opening_price: Optional[float] = None
    num_contracts: Optional[float] = None
    legs: str = ""

    def trade_date(self, basis):
        """Calendar day of the trade on the given basis, or None if missing."""
        if basis is DateBasis.OPENED:
            value = self.date_opened
        elif basis is DateBasis.CLOSED:
            value = self.date_closed
        else:
            raise ValueError(f"Unsupported date basis: {basis!r}")
        if value is None:
            return None
        return value.date() if isinstance(value, datetime) else value


def normalize_return(trade, mode):
    """
    Scale a trade's P/L according to the normalization mode.

    Returns None when the return is undefined (zero, missing or non-finite
    denominator, non-finite result) so the trade is skipped, not zeroed.
    """
    if trade.pl is None:
        return None

    if mode is Normalization.RAW:
        result = trade.pl
    elif mode is Normalization.MARGIN:
        if not trade.margin_req:
            return None
        result = trade.pl / trade.margin_req
    elif mode is Normalization.NOTIONAL:
        notional = abs((trade.opening_price or 0.0) * (trade.num_contracts or 0.0))
        if not notional:
            return None
        result = trade.pl / notional
    else:
        raise ValueError(f"Unsupported normalization: {mode!r}")

    if not math.isfinite(result):
        return None
    return float(result)


def filter_trades(trades, options):
    """
    Apply ticker, strategy and date-range filters in that order.

    Parameters
    ----------
    trades  : iterable of Trade
    options : TailRiskOptions — already resolved

    Returns
    -------
    list[Trade]
    """
    filtered = list(trades)

    if options.ticker_filter:
        needle = options.ticker_filter.upper()
        before = len(filtered)
        filtered = [t for t in filtered if needle in (t.legs or "").upper()]
        logger.debug(f"Ticker filter {options.ticker_filter!r} dropped {before - len(filtered)} trades")

    if options.strategy_filter:
        wanted = set(options.strategy_filter)
        before = len(filtered)
        filtered = [t for t in filtered if t.strategy and t.strategy in wanted]
        logger.debug(f"Strategy filter dropped {before - len(filtered)} trades")

    if options.date_from is not None or options.date_to is not None:
        before = len(filtered)
        filtered = [t for t in filtered if _in_range(t.trade_date(options.date_basis), options)]
        logger.debug(f"Date range filter dropped {before - len(filtered)} trades")

    return filtered


def _in_range(day, options):
    if day is None:
        return False
    if options.date_from is not None and day < options.date_from:
        return False
    if options.date_to is not None and day > options.date_to:
        return False
    return True
