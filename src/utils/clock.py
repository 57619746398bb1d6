"""시계 유틸리티

모든 마감 시각은 UTC aware datetime으로 계산한다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
