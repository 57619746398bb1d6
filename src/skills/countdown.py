"""다음 회복까지 남은 시간 계산 / MM:SS 포맷"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from src.models.pool import ResourcePool


def seconds_until_next(pool: ResourcePool, now: datetime) -> Optional[float]:
    """대기열 첫 항목까지 남은 초 (0 하한). 대기 없음이면 None."""
    nxt = pool.next_regeneration_at
    if nxt is None:
        return None
    return max(0.0, (nxt - now).total_seconds())


def format_countdown(seconds: Optional[float]) -> str:
    """초 → 'MM:SS'. None이면 '00:00'"""
    if seconds is None or seconds <= 0:
        return "00:00"
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"
