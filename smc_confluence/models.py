"""
Data models for the SMC confluence engine
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

BULLISH = 'bullish'
BEARISH = 'bearish'

BUY = 'BUY'
SELL = 'SELL'
NEUTRAL = 'NEUTRAL'


@dataclass(frozen=True)
class Bar:
    """One OHLCV candle, timestamp in epoch milliseconds"""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def from_binance_kline(cls, kline_data: List) -> 'Bar':
        """Create Bar from Binance kline data"""
        return cls(
            timestamp=int(kline_data[0]),
            open=float(kline_data[1]),
            high=float(kline_data[2]),
            low=float(kline_data[3]),
            close=float(kline_data[4]),
            volume=float(kline_data[5])
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume
        }


@dataclass(frozen=True)
class Zone:
    """Price band left behind by an imbalance (FVG) or an impulse (order block)"""
    direction: str  # 'bullish' or 'bearish'
    top: float
    bottom: float
    index: int
    start_time: int
    is_valid: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'direction': self.direction,
            'top': self.top,
            'bottom': self.bottom,
            'index': self.index,
            'start_time': self.start_time,
            'is_valid': self.is_valid
        }


@dataclass(frozen=True)
class Pivot:
    """Represents a fractal pivot point (swing high/low)"""
    price: float
    idx: int
    time: int


@dataclass(frozen=True)
class StructureEvent:
    """Break of structure at a swing pivot"""
    kind: str  # only 'BOS' is produced
    direction: str
    price: float
    index: int
    time: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'direction': self.direction,
            'price': self.price,
            'index': self.index,
            'time': self.time
        }


@dataclass(frozen=True)
class ConfluenceDetails:
    """Which confluence factors are active for one direction"""
    ob: bool = False
    fvg: bool = False
    bos: bool = False
    sweep: bool = False

    def score(self, include_sweep: bool = True) -> int:
        factors = [self.ob, self.fvg, self.bos]
        if include_sweep:
            factors.append(self.sweep)
        return sum(1 for f in factors if f)

    def to_dict(self) -> Dict[str, bool]:
        return {'ob': self.ob, 'fvg': self.fvg, 'bos': self.bos, 'sweep': self.sweep}


@dataclass(frozen=True)
class NoTrade:
    """No actionable trade plan"""
    reason: str = 'no signal'

    def to_dict(self) -> Dict[str, Any]:
        return {'status': 'NO_TRADE', 'reason': self.reason}


@dataclass(frozen=True)
class Trade:
    """Trade plan derived from a fired signal"""
    direction: str  # 'BUY' or 'SELL'
    entry: float
    stop_loss: float
    take_profit: float
    risk_reward: float
    pnl_estimate: float  # percent, positive when the target is reached

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': 'TRADE',
            'direction': self.direction,
            'entry': self.entry,
            'sl': self.stop_loss,
            'tp': self.take_profit,
            'rr': self.risk_reward,
            'pnl_estimate': self.pnl_estimate
        }


TradePlan = Union[Trade, NoTrade]


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable output of one engine run"""
    bull_score: int = 0
    bear_score: int = 0
    bull_confluence: ConfluenceDetails = field(default_factory=ConfluenceDetails)
    bear_confluence: ConfluenceDetails = field(default_factory=ConfluenceDetails)
    order_blocks: Tuple[Zone, ...] = ()
    fvgs: Tuple[Zone, ...] = ()
    structure: Tuple[StructureEvent, ...] = ()
    signal: str = NEUTRAL
    trade: TradePlan = field(default_factory=NoTrade)

    @property
    def confluences(self) -> Mapping[str, ConfluenceDetails]:
        """Read-only view of both directions, keyed bullish / bearish"""
        return MappingProxyType({BULLISH: self.bull_confluence, BEARISH: self.bear_confluence})

    @property
    def has_trade(self) -> bool:
        return isinstance(self.trade, Trade)

    @property
    def entry_price(self) -> Optional[float]:
        return self.trade.entry if isinstance(self.trade, Trade) else None

    @property
    def sl_price(self) -> Optional[float]:
        return self.trade.stop_loss if isinstance(self.trade, Trade) else None

    @property
    def tp_price(self) -> Optional[float]:
        return self.trade.take_profit if isinstance(self.trade, Trade) else None

    @property
    def rr_ratio(self) -> Optional[float]:
        return self.trade.risk_reward if isinstance(self.trade, Trade) else None

    @property
    def pnl_estimate(self) -> Optional[float]:
        return self.trade.pnl_estimate if isinstance(self.trade, Trade) else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for hosts (rendering, summaries, JSON output)"""
        return {
            'bull_score': self.bull_score,
            'bear_score': self.bear_score,
            'confluences': {k: v.to_dict() for k, v in self.confluences.items()},
            'order_blocks': [z.to_dict() for z in self.order_blocks],
            'fvgs': [z.to_dict() for z in self.fvgs],
            'structure': [s.to_dict() for s in self.structure],
            'signal': self.signal,
            'trade': self.trade.to_dict()
        }
