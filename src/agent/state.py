"""라이프 풀 상태 머신

FULL      : current == max, 대기열 비어 있음
DEPLETING : 0 < current < max
EMPTY     : current == 0

상태 전이 규칙을 정의하고 검증한다. 종료 상태는 없다.
"""

from __future__ import annotations

from enum import Enum, auto

from src.models.pool import MAX_LIVES, ResourcePool


class PoolState(Enum):
    FULL = auto()
    DEPLETING = auto()
    EMPTY = auto()


# 허용된 상태 전이 맵: {현재상태: {허용되는 다음 상태들}}
# 같은 상태 유지(만료 없는 스윕)는 항상 허용
_VALID_TRANSITIONS: dict[PoolState, frozenset[PoolState]] = {
    PoolState.FULL: frozenset({PoolState.FULL, PoolState.DEPLETING}),
    PoolState.DEPLETING: frozenset({
        PoolState.DEPLETING, PoolState.EMPTY, PoolState.FULL,
    }),
    PoolState.EMPTY: frozenset({
        PoolState.EMPTY, PoolState.DEPLETING, PoolState.FULL,
    }),
}


def classify(pool: ResourcePool, max_lives: int = MAX_LIVES) -> PoolState:
    current = pool.clamped(max_lives).current
    if current >= max_lives:
        return PoolState.FULL
    if current <= 0:
        return PoolState.EMPTY
    return PoolState.DEPLETING


def validate_transition(current: PoolState, target: PoolState) -> bool:
    """상태 전이가 유효한지 검증"""
    allowed = _VALID_TRANSITIONS.get(current, frozenset())
    return target in allowed
