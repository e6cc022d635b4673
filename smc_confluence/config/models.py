"""
Configuration models for the SMC confluence engine
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass(frozen=True)
class EngineConfig:
    """Parameters of one engine run, read-only to the engine"""
    swing_length: int = 5
    ob_lookback: int = 10  # not used by scoring, kept for hosts
    min_confluence: int = 2
    rr_ratio: float = 2.0
    sl_buffer: float = 0.1  # percent
    include_sweep: bool = True

    @property
    def max_score(self) -> int:
        return 4 if self.include_sweep else 3

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if self.swing_length < 1:
            errors.append(f"swing_length must be >= 1: {self.swing_length}")

        if self.ob_lookback < 1:
            errors.append(f"ob_lookback must be >= 1: {self.ob_lookback}")

        if not 1 <= self.min_confluence <= self.max_score:
            errors.append(f"min_confluence must be between 1 and {self.max_score}: {self.min_confluence}")

        if self.rr_ratio <= 0:
            errors.append(f"rr_ratio must be positive: {self.rr_ratio}")

        if self.sl_buffer < 0:
            errors.append(f"sl_buffer must be >= 0: {self.sl_buffer}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'swing_length': self.swing_length,
            'ob_lookback': self.ob_lookback,
            'min_confluence': self.min_confluence,
            'rr_ratio': self.rr_ratio,
            'sl_buffer': self.sl_buffer,
            'include_sweep': self.include_sweep
        }


@dataclass
class AppConfig:
    """Host application configuration"""
    symbol: str = "BTCUSDT"
    interval: str = "15m"
    history_limit: int = 150
    max_bars: int = 200
    log_level: str = "INFO"
    engine: EngineConfig = field(default_factory=EngineConfig)

    def __post_init__(self):
        self.symbol = self.symbol.upper()
        self.log_level = self.log_level.upper()

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = list(self.engine.validate())

        if not self.symbol:
            errors.append("symbol must not be empty")

        if self.history_limit < 1:
            errors.append(f"history_limit must be >= 1: {self.history_limit}")

        if self.max_bars < 1:
            errors.append(f"max_bars must be >= 1: {self.max_bars}")
        elif self.history_limit > self.max_bars:
            errors.append(f"history_limit {self.history_limit} exceeds max_bars {self.max_bars}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'symbol': self.symbol,
            'interval': self.interval,
            'history_limit': self.history_limit,
            'max_bars': self.max_bars,
            'log_level': self.log_level,
            'engine': self.engine.to_dict()
        }
