"""데이터 모델: 라이프 풀 (ResourcePool)

사용자 1명당 1개의 행. 원격 저장소의 영속 단위이며
모든 모델은 frozen=True + slots=True로 불변성을 보장한다.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Optional

from src.models.regen_queue import (
    RegenerationQueue,
    format_timestamp,
    parse_timestamp,
)

MAX_LIVES = 5
REGEN_INTERVAL = timedelta(minutes=10)


@dataclass(frozen=True, slots=True)
class ResourcePool:
    """라이프 풀 상태

    owner_id: 소유자 식별자 (불투명 문자열)
    current: 현재 라이프 수, 0 <= current <= max
    pending: 회복 대기열
    updated_at: 마지막 저장 시각 (진단용, 충돌 해결에는 사용하지 않음)
    """

    owner_id: str
    current: int = MAX_LIVES
    pending: RegenerationQueue = RegenerationQueue()
    updated_at: Optional[datetime] = None

    @classmethod
    def full(cls, owner_id: str, max_lives: int = MAX_LIVES) -> ResourcePool:
        return cls(owner_id=owner_id, current=max_lives)

    @property
    def next_regeneration_at(self) -> Optional[datetime]:
        return self.pending.first

    def clamped(self, max_lives: int = MAX_LIVES) -> ResourcePool:
        """범위를 벗어난 current 값을 [0, max_lives]로 보정"""
        value = min(max(self.current, 0), max_lives)
        if value == self.current:
            return self
        return replace(self, current=value)

    def with_updated_at(self, timestamp: datetime) -> ResourcePool:
        return replace(self, updated_at=timestamp)

    def summary(self, max_lives: int = MAX_LIVES) -> str:
        nxt = self.next_regeneration_at
        return (
            f"{self.current}/{max_lives} "
            f"(대기 {len(self.pending)}개"
            + (f", 다음 {nxt:%H:%M:%S}" if nxt else "")
            + ")"
        )

    # ── 원격 행 변환 ──

    def to_record(self) -> dict[str, Any]:
        return {
            "user_id": self.owner_id,
            "current_lives": self.current,
            "regeneration_times": self.pending.to_list(),
            "updated_at": (
                format_timestamp(self.updated_at) if self.updated_at else None
            ),
        }

    @classmethod
    def from_record(
        cls,
        record: dict[str, Any],
        max_lives: int = MAX_LIVES,
    ) -> ResourcePool:
        """원격 행 → ResourcePool. 외부 기록의 잘못된 current는 보정한다."""
        updated = record.get("updated_at")
        pool = cls(
            owner_id=str(record["user_id"]),
            current=int(record.get("current_lives", max_lives)),
            pending=RegenerationQueue.from_list(record.get("regeneration_times")),
            updated_at=parse_timestamp(updated) if updated else None,
        )
        return pool.clamped(max_lives)
