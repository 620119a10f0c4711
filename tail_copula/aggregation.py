"""
Return Aggregator — per-strategy daily returns on a shared calendar.

Trades are reduced to (strategy, day, normalized return) observations, then
the strategies x days matrix is built in one pass. Strategies trade on
different schedules, so the calendar is the union of every day any strategy
traded; cells where a strategy did not trade are zero and flagged False in
the traded mask.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .trades import normalize_return

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlignedStrategyReturns:
    """Aligned daily returns for a set of strategies."""
    strategies: tuple       # sorted strategy names
    dates: tuple            # sorted datetime.date calendar
    returns: np.ndarray     # [n_strategies, n_dates], 0.0 where not traded
    traded_mask: np.ndarray  # [n_strategies, n_dates] bool

    @property
    def n_strategies(self):
        return len(self.strategies)

    @property
    def n_days(self):
        return len(self.dates)

    def traded_days(self):
        """Number of days each strategy actually traded."""
        return self.traded_mask.sum(axis=1)


def _observations(trades, normalization, date_basis):
    """Yield (strategy, day, normalized_return) for every usable trade."""
    for trade in trades:
        if not trade.strategy or not trade.strategy.strip():
            logger.debug("Skipping trade without strategy")
            continue
        day = trade.trade_date(date_basis)
        if day is None:
            logger.debug(f"Skipping {trade.strategy} trade without {date_basis.value} date")
            continue
        value = normalize_return(trade, normalization)
        if value is None:
            logger.debug(f"Skipping {trade.strategy} trade on {day}: "
                         f"{normalization.value} return undefined")
            continue
        yield trade.strategy, day, value


def aggregate_and_align_returns(trades, normalization, date_basis):
    """
    Sum normalized returns per (strategy, day) and align on the union calendar.

    Parameters
    ----------
    trades        : iterable of Trade — already filtered
    normalization : Normalization
    date_basis    : DateBasis

    Returns
    -------
    AlignedStrategyReturns
        With fewer than two strategies the calendar is empty.
    """
    obs = list(_observations(trades, normalization, date_basis))
    strategies = tuple(sorted({s for s, _, _ in obs}))

    if len(strategies) < 2:
        n = len(strategies)
        return AlignedStrategyReturns(
            strategies=strategies,
            dates=(),
            returns=np.zeros((n, 0)),
            traded_mask=np.zeros((n, 0), dtype=bool),
        )

    dates = tuple(sorted({d for _, d, _ in obs}))
    s_index = {s: i for i, s in enumerate(strategies)}
    d_index = {d: j for j, d in enumerate(dates)}

    rows = np.fromiter((s_index[s] for s, _, _ in obs), dtype=np.intp, count=len(obs))
    cols = np.fromiter((d_index[d] for _, d, _ in obs), dtype=np.intp, count=len(obs))
    values = np.fromiter((v for _, _, v in obs), dtype=np.float64, count=len(obs))

    returns = np.zeros((len(strategies), len(dates)))
    np.add.at(returns, (rows, cols), values)
    traded_mask = np.zeros(returns.shape, dtype=bool)
    traded_mask[rows, cols] = True

    return AlignedStrategyReturns(
        strategies=strategies,
        dates=dates,
        returns=returns,
        traded_mask=traded_mask,
    )
