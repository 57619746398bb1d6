"""회복 점검 에이전트 (RegenerationAgent)

고정 주기(기본 30초)로 LivesManager.check_and_regenerate()를 호출한다.
세션 종료(로그아웃) 시 request_stop()으로 즉시 취소된다.

상태 머신: WAITING → CHECKING → WAITING (루프)
스킬 구성: PollerSkill
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import Optional

from src.agents.base import BaseAgent
from src.agents.lives_manager import LivesManager
from src.models.config import LivesConfig
from src.models.events import LivesEvent
from src.skills.poller import PollerSkill

logger = logging.getLogger("dharma.agent.regeneration")


class RegenState(Enum):
    """회복 에이전트 내부 상태"""
    WAITING = auto()
    CHECKING = auto()


class RegenerationAgent(BaseAgent):
    """주기적 회복 점검 에이전트

    저장소 오류는 LivesManager가 삼키므로 루프는 계속 돈다.
    연속 오류가 max_consecutive_errors에 도달하면 STORE_UNHEALTHY를 1회 발행한다.
    """

    def __init__(
        self,
        manager: LivesManager,
        config: LivesConfig,
        event_bus: Optional[asyncio.Queue] = None,  # type: ignore[type-arg]
    ) -> None:
        super().__init__("regeneration_agent", event_bus)
        self._manager = manager
        self._config = config
        self._state = RegenState.WAITING
        self._tick_count = 0
        self._consecutive_errors = 0

        self._poller = PollerSkill(
            base_interval=config.poll_interval,
            max_interval=config.max_poll_interval,
            backoff_multiplier=config.backoff_multiplier,
            jitter_range=config.jitter_range,
        )

    @property
    def regen_state(self) -> RegenState:
        return self._state

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def consecutive_errors(self) -> int:
        return self._consecutive_errors

    async def setup(self) -> None:
        logger.info(
            "RegenerationAgent 초기화 완료 (간격: %.0fs)", self._config.poll_interval,
        )

    async def run(self) -> None:
        """점검 루프: 대기 → 점검"""
        interval = self._poller.current_interval
        while not self._stop_event.is_set():
            logger.debug("다음 회복 점검까지 %.1f초 대기", interval)
            if await self.wait_stopped(interval):
                break
            had_error = await self._tick_once()
            interval = self._poller.next_interval(had_error)

    async def teardown(self) -> None:
        self._state = RegenState.WAITING
        logger.info("RegenerationAgent 정리 완료 (총 %d회 점검)", self._tick_count)

    async def _tick_once(self) -> bool:
        """단일 점검 사이클. 저장소 오류 시 True 반환."""
        self._state = RegenState.CHECKING
        ok = False
        try:
            await self._manager.check_and_regenerate()
            ok = self._manager.last_sync_ok
        except Exception:
            # 예외가 나도 루프는 계속된다
            logger.exception("회복 점검 중 예상치 못한 오류")
        finally:
            self._state = RegenState.WAITING
        self._tick_count += 1

        if ok:
            if self._consecutive_errors:
                logger.info("저장소 복구 (%d회 연속 실패 후)", self._consecutive_errors)
            self._consecutive_errors = 0
            return False

        self._consecutive_errors += 1
        logger.debug("회복 점검 실패 (%d회 연속)", self._consecutive_errors)
        if self._consecutive_errors == self._config.max_consecutive_errors:
            await self.emit(LivesEvent.STORE_UNHEALTHY, {
                "reason": "consecutive_errors",
                "error_count": self._consecutive_errors,
            })
        return True
