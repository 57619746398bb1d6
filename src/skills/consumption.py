"""라이프 소비 스킬

라이프 1개를 차감하고 회복 마감 시각 1개를 대기열 끝에 연결(chaining)한다.
연속 차감 시 회복은 REGEN_INTERVAL 간격으로 하나씩 일어난다.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from src.models.pool import MAX_LIVES, REGEN_INTERVAL, ResourcePool


def next_deadline(
    pool: ResourcePool,
    now: datetime,
    interval: timedelta = REGEN_INTERVAL,
) -> datetime:
    """가장 늦은 미래 예약 뒤에 연결, 없으면 now 기준"""
    anchor = pool.pending.latest_after(now) or now
    return anchor + interval


def consume(
    pool: ResourcePool,
    now: datetime,
    *,
    max_lives: int = MAX_LIVES,
    interval: timedelta = REGEN_INTERVAL,
) -> Optional[ResourcePool]:
    """차감 후 풀 반환. current == 0이면 None (소진 신호, 오류 아님)."""
    pool = pool.clamped(max_lives)
    if pool.current <= 0:
        return None

    deadline = next_deadline(pool, now, interval)
    return replace(
        pool,
        current=pool.current - 1,
        pending=pool.pending.insert(deadline),
    )
