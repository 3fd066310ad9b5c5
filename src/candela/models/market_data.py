"""
Core Market Data Models

This module contains the two value types the classification engine works on:
- Bar: one immutable OHLC price bar
- BarWindow: read-only, newest-first sequence of bars

Bars are produced by an external data feed; the engine never mutates them.
A window's fingerprint is derived from its content so that logically
identical windows share cached metrics.
"""

import hashlib
import struct
from collections.abc import Sequence
from datetime import datetime, timezone
from functools import cached_property
from typing import Any, Iterable, Iterator, Mapping, Optional, Union, overload

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import EmptyWindow, InvalidArgument


class Bar(BaseModel):
    """
    Immutable OHLC price bar.

    Only ``high >= low`` is enforced; keeping open and close inside the
    range is the data feed's responsibility.
    """

    open: float = Field(..., description="Opening price")
    high: float = Field(..., description="Highest price")
    low: float = Field(..., description="Lowest price")
    close: float = Field(..., description="Closing price")
    timestamp: Optional[datetime] = Field(
        None,
        description="Bar open time in UTC"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator('timestamp', mode='before')
    @classmethod
    def validate_timestamp(cls, v) -> Optional[datetime]:
        """Ensure timestamp is timezone-aware UTC."""
        if v is None:
            return None
        if isinstance(v, str):
            if v.endswith('Z'):
                v = v[:-1] + '+00:00'
            dt = datetime.fromisoformat(v)
        elif isinstance(v, (int, float)):
            # Epoch milliseconds
            dt = datetime.fromtimestamp(v / 1000, tz=timezone.utc)
        elif isinstance(v, datetime):
            dt = v
        else:
            raise ValueError(f"Invalid timestamp format: {type(v)}")

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        elif dt.tzinfo != timezone.utc:
            dt = dt.astimezone(timezone.utc)

        return dt

    @model_validator(mode='after')
    def validate_range(self):
        """Reject bars whose high is below their low."""
        if self.high < self.low:
            raise InvalidArgument(
                f"High price {self.high} must be >= low price {self.low}",
                argument="high",
                value=self.high,
            )
        return self

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> 'Bar':
        """
        Create a Bar from a feed record.

        Accepts long keys ({'open', 'high', 'low', 'close', 'timestamp'})
        or the short form used by exchange candle feeds
        ({'o', 'h', 'l', 'c', 't'}).
        """
        if 'o' in data:
            return cls(
                open=data['o'],
                high=data['h'],
                low=data['l'],
                close=data['c'],
                timestamp=data.get('t'),
            )
        return cls(
            open=data['open'],
            high=data['high'],
            low=data['low'],
            close=data['close'],
            timestamp=data.get('timestamp'),
        )

    @property
    def is_white(self) -> bool:
        """Close above open."""
        return self.open < self.close

    @property
    def is_black(self) -> bool:
        """Close below open."""
        return self.open > self.close

    @property
    def body_top(self) -> float:
        return max(self.open, self.close)

    @property
    def body_bottom(self) -> float:
        return min(self.open, self.close)


_BAR_STRUCT = struct.Struct('<4d')


class BarWindow(Sequence):
    """
    Read-only ordered view over bars.

    Index 0 is the most recent (current) bar and increasing indices walk
    back in time. Slicing returns another BarWindow.
    """

    def __init__(self, bars: Iterable[Bar] = ()):
        self._bars = tuple(bars)

    @classmethod
    def coerce(cls, bars: Union['BarWindow', Iterable[Bar]]) -> 'BarWindow':
        """Return ``bars`` unchanged if already a window, else wrap it."""
        if isinstance(bars, BarWindow):
            return bars
        return cls(bars)

    @classmethod
    def from_chronological(cls, bars: Iterable[Bar]) -> 'BarWindow':
        """Build a window from bars ordered oldest first."""
        return cls(reversed(tuple(bars)))

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        newest_first: bool = False
    ) -> 'BarWindow':
        """Build a window from feed records (oldest first unless told otherwise)."""
        bars = [Bar.from_record(record) for record in records]
        if newest_first:
            return cls(bars)
        return cls.from_chronological(bars)

    def __len__(self) -> int:
        return len(self._bars)

    @overload
    def __getitem__(self, index: int) -> Bar: ...

    @overload
    def __getitem__(self, index: slice) -> 'BarWindow': ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return BarWindow(self._bars[index])
        return self._bars[index]

    def __iter__(self) -> Iterator[Bar]:
        return iter(self._bars)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BarWindow):
            return NotImplemented
        return self.fingerprint == other.fingerprint

    def __hash__(self) -> int:
        return hash(self.fingerprint)

    def __repr__(self) -> str:
        return f"BarWindow(len={len(self._bars)}, fingerprint={self.fingerprint[:12]})"

    @property
    def current(self) -> Bar:
        """The newest bar."""
        if not self._bars:
            raise EmptyWindow()
        return self._bars[0]

    def shift(self, offset: int) -> 'BarWindow':
        """The window as it stood ``offset`` bars ago."""
        if offset < 0:
            raise InvalidArgument(f"Shift offset must be >= 0: {offset}", argument="offset", value=offset)
        if offset == 0:
            return self
        return BarWindow(self._bars[offset:])

    def head(self, count: int) -> 'BarWindow':
        """The ``count`` newest bars."""
        return BarWindow(self._bars[:count])

    @cached_property
    def fingerprint(self) -> str:
        """
        Content-derived identifier of the bar sequence.

        Covers the OHLC values of every bar and the window length;
        timestamps do not take part because no metric reads them.
        """
        digest = hashlib.blake2b(digest_size=16)
        digest.update(len(self._bars).to_bytes(8, 'little'))
        for bar in self._bars:
            digest.update(_BAR_STRUCT.pack(bar.open, bar.high, bar.low, bar.close))
        return digest.hexdigest()
