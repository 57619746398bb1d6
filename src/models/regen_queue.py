"""재생 대기열 (RegenerationQueue)

라이프 1개가 회복되는 절대 시각들을 오름차순으로 보관한다.
N개의 독립 타이머 대신 정렬된 마감 시각 리스트 하나로 표현한다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 문자열 → aware UTC datetime. 'Z' 접미사와 naive 값도 허용."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class RegenerationQueue:
    """불변 정렬 대기열 (중복 허용)"""

    deadlines: tuple[datetime, ...] = ()

    def __post_init__(self) -> None:
        # 어떤 경로로 생성되든 항상 오름차순 유지
        ordered = tuple(sorted(self.deadlines))
        if ordered != self.deadlines:
            object.__setattr__(self, "deadlines", ordered)

    @classmethod
    def of(cls, deadlines: Iterable[datetime]) -> RegenerationQueue:
        return cls(tuple(deadlines))

    def __len__(self) -> int:
        return len(self.deadlines)

    def __iter__(self) -> Iterator[datetime]:
        return iter(self.deadlines)

    def __bool__(self) -> bool:
        return bool(self.deadlines)

    @property
    def first(self) -> Optional[datetime]:
        """다음 회복 시각 (비어 있으면 None)"""
        return self.deadlines[0] if self.deadlines else None

    def insert(self, deadline: datetime) -> RegenerationQueue:
        return RegenerationQueue(self.deadlines + (deadline,))

    def partition(
        self, now: datetime,
    ) -> tuple[tuple[datetime, ...], tuple[datetime, ...]]:
        """(만료된 항목 t <= now, 남은 항목 t > now)"""
        expired = tuple(t for t in self.deadlines if t <= now)
        future = tuple(t for t in self.deadlines if t > now)
        return expired, future

    def latest_after(self, now: datetime) -> Optional[datetime]:
        """now 이후 예약된 항목 중 가장 늦은 시각"""
        _, future = self.partition(now)
        return future[-1] if future else None

    def to_list(self) -> list[str]:
        return [format_timestamp(t) for t in self.deadlines]

    @classmethod
    def from_list(cls, values: Optional[Iterable[str]]) -> RegenerationQueue:
        return cls(tuple(parse_timestamp(v) for v in values or ()))
