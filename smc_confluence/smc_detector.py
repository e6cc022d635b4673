"""
Smart Money Concepts detection functions
"""
import logging
from typing import List, Sequence, Tuple

import pandas as pd

from .models import Bar, Pivot, StructureEvent, Zone, BULLISH, BEARISH

logger = logging.getLogger(__name__)

# Gap must exceed this fraction of the middle candle's range
FVG_GAP_RATIO = 0.3
# Impulse body must exceed this multiple of the prior candle's range
OB_IMPULSE_RATIO = 1.2


def detect_fvg(df: pd.DataFrame) -> List[Zone]:
    """Detect Fair Value Gaps (3-candle imbalances)"""
    fvgs: List[Zone] = []
    if len(df) < 3:
        return fvgs

    opens = df['open'].to_numpy(dtype=float)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)
    times = df['timestamp'].to_numpy()

    for i in range(2, len(df)):
        mid_range = highs[i-1] - lows[i-1]

        # Bullish FVG: gap up between candle i-2 high and candle i low
        if (highs[i-2] < lows[i] and closes[i-1] > opens[i-1]
                and (lows[i] - highs[i-2]) > mid_range * FVG_GAP_RATIO):
            fvgs.append(Zone(
                direction=BULLISH,
                top=float(lows[i]),
                bottom=float(highs[i-2]),
                index=i-1,
                start_time=int(times[i-1])
            ))

        # Bearish FVG: gap down between candle i-2 low and candle i high
        if (lows[i-2] > highs[i] and closes[i-1] < opens[i-1]
                and (lows[i-2] - highs[i]) > mid_range * FVG_GAP_RATIO):
            fvgs.append(Zone(
                direction=BEARISH,
                top=float(lows[i-2]),
                bottom=float(highs[i]),
                index=i-1,
                start_time=int(times[i-1])
            ))

    return fvgs


def detect_ob(df: pd.DataFrame) -> List[Zone]:
    """Detect Order Blocks: the opposite candle right before an impulse candle"""
    obs: List[Zone] = []
    if len(df) < 2:
        return obs

    opens = df['open'].to_numpy(dtype=float)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)
    times = df['timestamp'].to_numpy()

    for i in range(1, len(df)):
        body_size = abs(closes[i] - opens[i])
        prev_range = highs[i-1] - lows[i-1]
        if body_size <= prev_range * OB_IMPULSE_RATIO:
            continue

        # Bullish OB: last bearish candle before bullish impulse
        if closes[i] > opens[i] and closes[i-1] < opens[i-1]:
            direction = BULLISH
        # Bearish OB: last bullish candle before bearish impulse
        elif closes[i] < opens[i] and closes[i-1] > opens[i-1]:
            direction = BEARISH
        else:
            continue

        obs.append(Zone(
            direction=direction,
            top=float(highs[i-1]),
            bottom=float(lows[i-1]),
            index=i-1,
            start_time=int(times[i-1])
        ))

    return obs


def fractal_pivots(df: pd.DataFrame, length: int = 5) -> Tuple[List[Pivot], List[Pivot]]:
    """
    Detect fractal pivot points (swing highs/lows)

    A bar is a swing high when its high is strictly above the highs of the
    `length` bars on each side; swing lows mirror this with strictly lower
    lows. Equal neighbours disqualify both bars, so flat tops never pivot.

    Args:
        df: Price dataframe
        length: Bars on each side of the candidate

    Returns:
        Tuple of (high pivots, low pivots) in ascending index order
    """
    highs_out: List[Pivot] = []
    lows_out: List[Pivot] = []

    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    times = df['timestamp'].to_numpy()

    for i in range(length, len(df) - length):
        is_high = True
        is_low = True
        for j in range(1, length + 1):
            if highs[i] <= highs[i-j] or highs[i] <= highs[i+j]:
                is_high = False
            if lows[i] >= lows[i-j] or lows[i] >= lows[i+j]:
                is_low = False
            if not is_high and not is_low:
                break

        if is_high:
            highs_out.append(Pivot(float(highs[i]), i, int(times[i])))
        if is_low:
            lows_out.append(Pivot(float(lows[i]), i, int(times[i])))

    return highs_out, lows_out


def detect_bos(high_pivots: Sequence[Pivot], low_pivots: Sequence[Pivot]) -> List[StructureEvent]:
    """Detect Break of Structure from the two most recent pivots of each kind"""
    events: List[StructureEvent] = []

    if len(high_pivots) >= 2:
        last, prev = high_pivots[-1], high_pivots[-2]
        if last.price > prev.price:
            events.append(StructureEvent('BOS', BULLISH, last.price, last.idx, last.time))

    if len(low_pivots) >= 2:
        last, prev = low_pivots[-1], low_pivots[-2]
        if last.price < prev.price:
            events.append(StructureEvent('BOS', BEARISH, last.price, last.idx, last.time))

    return events


def detect_liquidity_sweep(last_bar: Bar, high_pivots: Sequence[Pivot],
                           low_pivots: Sequence[Pivot]) -> Tuple[bool, bool]:
    """
    Detect a wick through the latest swing level that closes back inside

    Returns:
        Tuple of (bullish sweep, bearish sweep)
    """
    bull_sweep = False
    bear_sweep = False

    if low_pivots:
        level = low_pivots[-1].price
        bull_sweep = last_bar.low < level and last_bar.close > level

    if high_pivots:
        level = high_pivots[-1].price
        bear_sweep = last_bar.high > level and last_bar.close < level

    return bull_sweep, bear_sweep
