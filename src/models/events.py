"""세션 이벤트 버스 메시지 모델"""

from __future__ import annotations

from dataclasses import dataclass
from time import monotonic
from typing import Any


class LivesEvent:
    """라이프 이벤트 타입 상수"""

    LIVES_UPDATED = "lives.updated"
    LIFE_DEDUCTED = "lives.deducted"
    LIVES_DEPLETED = "lives.depleted"
    LIVES_REGENERATED = "lives.regenerated"
    LIVES_RESET = "lives.reset"
    STORE_ERROR = "store.error"
    STORE_UNHEALTHY = "store.unhealthy"
    SESSION_STOP = "session.stop"


@dataclass(frozen=True, slots=True)
class LivesMessage:
    """이벤트 버스 메시지"""

    event: str
    source: str
    payload: Any
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        if self.timestamp == 0.0:
            object.__setattr__(self, "timestamp", monotonic())
