"""
Confluence scoring and trade planning for the SMC engine
"""
import logging
from typing import Dict, Optional, Sequence

from .config.models import EngineConfig
from .data_loader import BarsLike, bars_to_dataframe, last_bar, validate_bars
from .models import (
    AnalysisResult, Bar, ConfluenceDetails, NoTrade, StructureEvent, Trade, TradePlan, Zone,
    BULLISH, BEARISH, BUY, SELL, NEUTRAL
)
from .smc_detector import (
    fractal_pivots, detect_bos, detect_fvg, detect_ob, detect_liquidity_sweep
)

logger = logging.getLogger(__name__)


def price_in_zone(bar: Bar, zone: Zone) -> bool:
    """Bar traded into the zone and closed on the zone's side"""
    if zone.direction == BULLISH:
        return bar.low <= zone.top and bar.close >= zone.bottom
    return bar.high >= zone.bottom and bar.close <= zone.top


def occupied_zone(bar: Bar, zones: Sequence[Zone], direction: str) -> Optional[Zone]:
    """Most recent zone of the given direction the bar is trading in"""
    for zone in reversed(zones):
        if zone.direction == direction and price_in_zone(bar, zone):
            return zone
    return None


def score_confluence(bar: Bar, order_blocks: Sequence[Zone], fvgs: Sequence[Zone],
                     structure: Sequence[StructureEvent], bull_sweep: bool = False,
                     bear_sweep: bool = False) -> Dict[str, ConfluenceDetails]:
    """Evaluate every confluence factor for both directions"""
    confluences = {}
    for direction, sweep in ((BULLISH, bull_sweep), (BEARISH, bear_sweep)):
        confluences[direction] = ConfluenceDetails(
            ob=occupied_zone(bar, order_blocks, direction) is not None,
            fvg=occupied_zone(bar, fvgs, direction) is not None,
            bos=any(event.direction == direction for event in structure),
            sweep=sweep
        )
    return confluences


def decide_signal(bull_score: int, bear_score: int, min_confluence: int) -> str:
    """Bullish is checked first, so it wins when both sides qualify"""
    if bull_score >= min_confluence:
        return BUY
    if bear_score >= min_confluence:
        return SELL
    return NEUTRAL


def build_trade_plan(signal: str, bar: Bar, order_blocks: Sequence[Zone],
                     config: EngineConfig) -> TradePlan:
    """
    Compute entry, stop and target for a fired signal

    The stop sits beyond the far edge of the occupied order block, or beyond
    the bar's own extreme when price isn't in one, pushed out by sl_buffer
    percent. The target is rr_ratio times the risk away from entry.

    Args:
        signal: 'BUY', 'SELL' or 'NEUTRAL'
        bar: Latest bar
        order_blocks: Detected order blocks
        config: Engine configuration

    Returns:
        Trade, or NoTrade when no signal fired or the plan is undefined
    """
    if signal == NEUTRAL:
        return NoTrade()

    entry = bar.close
    buffer = config.sl_buffer / 100

    if signal == BUY:
        zone = occupied_zone(bar, order_blocks, BULLISH)
        reference = zone.bottom if zone is not None else bar.low
        sl = reference * (1 - buffer)
    else:
        zone = occupied_zone(bar, order_blocks, BEARISH)
        reference = zone.top if zone is not None else bar.high
        sl = reference * (1 + buffer)

    if entry <= 0:
        logger.warning(f"{signal} signal without trade plan: non-positive entry price {entry}")
        return NoTrade(f"non-positive entry price {entry}")

    if (signal == BUY and sl >= entry) or (signal == SELL and sl <= entry):
        logger.warning(f"{signal} signal without trade plan: stop {sl} not beyond entry {entry}")
        return NoTrade(f"zero risk: stop {sl} not beyond entry {entry}")

    risk = abs(entry - sl)

    if signal == BUY:
        tp = entry + risk * config.rr_ratio
        pnl_estimate = (tp - entry) / entry * 100
    else:
        tp = entry - risk * config.rr_ratio
        pnl_estimate = (entry - tp) / entry * 100

    return Trade(
        direction=signal,
        entry=float(entry),
        stop_loss=float(sl),
        take_profit=float(tp),
        risk_reward=float(config.rr_ratio),
        pnl_estimate=float(pnl_estimate)
    )


def analyze_price_data(bars: BarsLike, config: Optional[EngineConfig] = None) -> AnalysisResult:
    """
    Run the full SMC analysis on a bar sequence

    Every call recomputes everything from the bars given; nothing is carried
    over between calls and the input is never modified.

    Args:
        bars: Ordered bars (list of Bar, list of dicts or DataFrame)
        config: Engine configuration, defaults when omitted

    Returns:
        AnalysisResult with zones, structure, scores, signal and trade plan

    Raises:
        BarValidationError: If the bars are malformed
    """
    if config is None:
        config = EngineConfig()

    df = bars_to_dataframe(bars)
    validate_bars(df)

    if df.empty:
        return AnalysisResult()

    # Detectors run independently over the same frame
    fvgs = detect_fvg(df)
    order_blocks = detect_ob(df)
    high_pivots, low_pivots = fractal_pivots(df, config.swing_length)
    structure = detect_bos(high_pivots, low_pivots)

    bar = last_bar(df)
    bull_sweep, bear_sweep = detect_liquidity_sweep(bar, high_pivots, low_pivots)

    confluences = score_confluence(bar, order_blocks, fvgs, structure, bull_sweep, bear_sweep)
    bull_score = confluences[BULLISH].score(config.include_sweep)
    bear_score = confluences[BEARISH].score(config.include_sweep)

    signal = decide_signal(bull_score, bear_score, config.min_confluence)
    trade = build_trade_plan(signal, bar, order_blocks, config)

    logger.debug(
        f"Analyzed {len(df)} bars: {len(order_blocks)} OBs, {len(fvgs)} FVGs, "
        f"{len(high_pivots)}/{len(low_pivots)} pivots, bull={bull_score} bear={bear_score} -> {signal}"
    )

    return AnalysisResult(
        bull_score=bull_score,
        bear_score=bear_score,
        bull_confluence=confluences[BULLISH],
        bear_confluence=confluences[BEARISH],
        order_blocks=tuple(order_blocks),
        fvgs=tuple(fvgs),
        structure=tuple(structure),
        signal=signal,
        trade=trade
    )
