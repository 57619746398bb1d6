"""회복 스윕 스킬

만료된 대기열 항목을 라이프 증가로 환산하는 순수 함수.
같은 now로 여러 번 호출해도 결과가 같다 (멱등).
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from src.models.pool import MAX_LIVES, ResourcePool
from src.models.regen_queue import RegenerationQueue


def sweep(
    pool: ResourcePool,
    now: datetime,
    *,
    max_lives: int = MAX_LIVES,
) -> ResourcePool:
    """만료 항목 회수 → current 증가(상한 보정) → 대기열 정리

    만료 항목이 없으면 보정된 입력을 그대로 반환한다.
    호출자는 반환값이 입력과 같으면 저장을 생략해야 한다.
    """
    pool = pool.clamped(max_lives)
    expired, future = pool.pending.partition(now)
    if not expired:
        return pool

    current = min(max_lives, pool.current + len(expired))
    # 가득 차면 남은 예약은 모두 폐기 (이월 금지)
    pending = RegenerationQueue() if current == max_lives else RegenerationQueue(future)
    return replace(pool, current=current, pending=pending)


def regenerated_count(before: ResourcePool, after: ResourcePool) -> int:
    return max(after.current - before.current, 0)
