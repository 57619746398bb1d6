"""회복 점검 주기 스킬

기본은 고정 주기(30초). 저장소 오류가 이어지면 선택적으로
배수 백오프를 적용하고, 정상 응답 시 즉시 기본 주기로 돌아온다.
"""

from __future__ import annotations

import random


class PollerSkill:
    """점검 간격 계산"""

    __slots__ = (
        "_base_interval", "_max_interval",
        "_backoff_multiplier", "_jitter_range",
        "_current_interval",
    )

    def __init__(
        self,
        base_interval: float = 30.0,
        max_interval: float = 30.0,
        backoff_multiplier: float = 1.0,
        jitter_range: float = 0.0,
    ) -> None:
        self._base_interval = base_interval
        self._max_interval = max(max_interval, base_interval)
        self._backoff_multiplier = max(backoff_multiplier, 1.0)
        self._jitter_range = jitter_range
        self._current_interval = base_interval

    @property
    def current_interval(self) -> float:
        return self._current_interval

    def next_interval(self, had_error: bool) -> float:
        """다음 점검까지 대기 시간(초)"""
        if had_error:
            self._current_interval = min(
                self._current_interval * self._backoff_multiplier,
                self._max_interval,
            )
        else:
            self._current_interval = self._base_interval

        if self._jitter_range <= 0:
            return self._current_interval
        return self._current_interval + random.uniform(0, self._jitter_range)

    def reset(self) -> None:
        self._current_interval = self._base_interval
