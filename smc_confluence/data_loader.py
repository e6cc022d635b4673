"""
Data loading and preprocessing utilities
"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .models import Bar

logger = logging.getLogger(__name__)

COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']
PRICE_COLUMNS = ['open', 'high', 'low', 'close']

BarsLike = Union[pd.DataFrame, Iterable[Bar], Iterable[dict]]


class BarValidationError(ValueError):
    """Raised when a bar sequence is malformed"""


def _format_rows(mask: pd.Series, limit: int = 5) -> str:
    rows = list(np.flatnonzero(mask.to_numpy()))
    shown = ', '.join(str(r) for r in rows[:limit])
    if len(rows) > limit:
        shown += f", ... ({len(rows)} rows)"
    return shown


def bars_to_dataframe(bars: BarsLike) -> pd.DataFrame:
    """
    Convert a bar sequence to the canonical DataFrame layout

    Accepts a DataFrame, a list of Bar objects or a list of dicts. Always
    returns a new frame with a clean RangeIndex, so callers' data is never
    modified.
    """
    if isinstance(bars, pd.DataFrame):
        df = bars.copy()
        df.columns = [str(c).lower() for c in df.columns]
    else:
        data = []
        for bar in bars:
            data.append(bar.to_dict() if isinstance(bar, Bar) else dict(bar))
        df = pd.DataFrame(data) if data else pd.DataFrame(columns=COLUMNS)

    missing_columns = set(COLUMNS[:5]) - set(df.columns)
    if missing_columns:
        raise BarValidationError(f"Bars must contain columns: {COLUMNS[:5]}. Missing: {sorted(missing_columns)}")

    if 'volume' not in df.columns:
        df['volume'] = 0.0

    df = df[COLUMNS].reset_index(drop=True)
    for col in PRICE_COLUMNS + ['volume']:
        df[col] = pd.to_numeric(df[col], errors='coerce').astype(float)
    df['timestamp'] = pd.to_numeric(df['timestamp'], errors='coerce')

    return df


def validate_bars(df: pd.DataFrame) -> None:
    """
    Reject malformed bars

    Raises:
        BarValidationError: on NaN or infinite values, decreasing timestamps,
            inconsistent OHLC values or negative volume
    """
    if df.empty:
        return

    nan_rows = df[COLUMNS].isna().any(axis=1)
    if nan_rows.any():
        raise BarValidationError(f"Missing or non-numeric values at rows: {_format_rows(nan_rows)}")

    non_finite = pd.Series(~np.isfinite(df[COLUMNS].to_numpy(dtype=float)).all(axis=1), index=df.index)
    if non_finite.any():
        raise BarValidationError(f"Non-finite values at rows: {_format_rows(non_finite)}")

    decreasing = df['timestamp'].diff() < 0
    if decreasing.any():
        raise BarValidationError(f"Timestamps must be non-decreasing, violated at rows: {_format_rows(decreasing)}")

    invalid_ohlc = (
        (df['high'] < df['low']) |
        (df['high'] < df['open']) |
        (df['high'] < df['close']) |
        (df['low'] > df['open']) |
        (df['low'] > df['close'])
    )
    if invalid_ohlc.any():
        raise BarValidationError(f"Invalid OHLC data at rows: {_format_rows(invalid_ohlc)}")

    negative_volume = df['volume'] < 0
    if negative_volume.any():
        raise BarValidationError(f"Negative volume at rows: {_format_rows(negative_volume)}")


def last_bar(df: pd.DataFrame) -> Bar:
    """Most recent bar of a canonical frame"""
    row = df.iloc[-1]
    return Bar(
        timestamp=int(row['timestamp']),
        open=float(row['open']),
        high=float(row['high']),
        low=float(row['low']),
        close=float(row['close']),
        volume=float(row['volume'])
    )


def load_csv(path: str) -> pd.DataFrame:
    """
    Load CSV file and validate required columns

    Args:
        path: Path to CSV file

    Returns:
        Canonical DataFrame with integer millisecond timestamps

    Raises:
        ValueError: If required columns are missing or timestamps can't be parsed
        FileNotFoundError: If file doesn't exist
    """
    if not Path(path).exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    df = pd.read_csv(path)

    # Normalize column names to lowercase
    df.columns = [c.lower() for c in df.columns]

    required_columns = {'timestamp', 'open', 'high', 'low', 'close'}
    missing_columns = required_columns - set(df.columns)
    if missing_columns:
        raise ValueError(f'CSV must contain columns: {sorted(required_columns)}. Missing: {sorted(missing_columns)}')

    if 'volume' not in df.columns:
        df['volume'] = 0.0

    # Integer timestamps are taken as epoch ms, anything else is parsed as a date
    if not pd.api.types.is_numeric_dtype(df['timestamp']):
        try:
            parsed = pd.to_datetime(df['timestamp'], utc=True)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Could not parse timestamp column: {e}")
        df['timestamp'] = (parsed - pd.Timestamp(0, tz='UTC')) // pd.Timedelta(milliseconds=1)

    df['timestamp'] = df['timestamp'].astype('int64')
    df = df.sort_values('timestamp', kind='stable').reset_index(drop=True)

    logger.info(f"Loaded {len(df)} bars from {path}")
    return bars_to_dataframe(df)


class BarSeries:
    """
    Rolling window of bars fed by a live stream

    An update with the same timestamp as the last bar replaces it (the
    in-progress candle), a newer one is appended and the oldest bar is
    evicted once the window exceeds max_bars.
    """

    def __init__(self, max_bars: int = 200, bars: Optional[Iterable[Bar]] = None):
        if max_bars < 1:
            raise ValueError(f"max_bars must be >= 1, got {max_bars}")
        self.max_bars = max_bars
        self._bars: List[Bar] = []
        for bar in bars or []:
            self.update(bar)

    def update(self, bar: Bar) -> bool:
        """
        Append a new bar or replace the in-progress one

        Returns:
            True if the bar was appended, False if it replaced the last bar
        """
        if self._bars:
            last = self._bars[-1]
            if bar.timestamp == last.timestamp:
                self._bars[-1] = bar
                return False
            if bar.timestamp < last.timestamp:
                raise BarValidationError(
                    f"Out-of-order bar: {bar.timestamp} is older than last bar {last.timestamp}"
                )

        self._bars.append(bar)
        if len(self._bars) > self.max_bars:
            self._bars = self._bars[-self.max_bars:]
        return True

    @property
    def bars(self) -> Tuple[Bar, ...]:
        """Immutable snapshot for the engine"""
        return tuple(self._bars)

    def __len__(self) -> int:
        return len(self._bars)


def generate_mock_bars(count: int, start_price: float = 100.0, interval_ms: int = 15 * 60 * 1000,
                       end_time: Optional[int] = None, seed: Optional[int] = None) -> List[Bar]:
    """
    Generate a random-walk bar sequence with a slight upward drift

    Args:
        count: Number of bars
        start_price: Open of the first bar
        interval_ms: Bar spacing in milliseconds
        end_time: Timestamp the series ends before (defaults to now)
        seed: Random seed for reproducible data

    Returns:
        List of bars ordered by timestamp
    """
    rng = np.random.default_rng(seed)
    if end_time is None:
        end_time = int(pd.Timestamp.now(tz='UTC').value // 10**6)

    volatility = 0.5
    bars: List[Bar] = []
    price = start_price

    for i in range(count):
        open_ = price
        close = open_ + (rng.random() - 0.48) * volatility
        high = max(open_, close) + rng.random() * 0.2
        low = min(open_, close) - rng.random() * 0.2
        bars.append(Bar(
            timestamp=end_time - (count - i) * interval_ms,
            open=float(open_),
            high=float(high),
            low=float(low),
            close=float(close),
            volume=float(np.floor(rng.random() * 1000))
        ))
        price = close

    return bars
