"""세션 에이전트 기본 클래스

세션 안에서 돌아가는 백그라운드 작업(회복 점검 등)은 BaseAgent를 상속한다.
라이프사이클: INIT → READY → ACTIVE → DRAINING → OFF
run() 도중 예외가 나면 RECOVERING을 거쳐 DRAINING → OFF로 정리된다.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Optional

from src.models.events import LivesMessage


class AgentLifecycle(Enum):
    INIT = auto()
    READY = auto()
    ACTIVE = auto()
    DRAINING = auto()
    RECOVERING = auto()
    OFF = auto()


class BaseAgent(ABC):
    """세션 에이전트

    하위 클래스는 run()을 구현하고, 필요하면 setup() / teardown()을 덮어쓴다.
    run()은 stop_requested가 참이 되면 반환해야 한다.
    한 인스턴스는 한 번만 시작할 수 있다 (세션마다 새로 생성).
    """

    def __init__(
        self,
        agent_id: str,
        event_bus: Optional[asyncio.Queue[LivesMessage]] = None,
    ) -> None:
        self._id = agent_id
        self._event_bus = event_bus
        self._lifecycle = AgentLifecycle.INIT
        self._history: list[AgentLifecycle] = [AgentLifecycle.INIT]
        self._stop_event = asyncio.Event()
        self._logger = logging.getLogger(f"dharma.agent.{agent_id}")

    @property
    def agent_id(self) -> str:
        return self._id

    @property
    def lifecycle(self) -> AgentLifecycle:
        return self._lifecycle

    @property
    def lifecycle_history(self) -> list[AgentLifecycle]:
        return list(self._history)

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def _enter(self, state: AgentLifecycle) -> None:
        if state == self._lifecycle:
            return
        self._logger.debug("%s → %s", self._lifecycle.name, state.name)
        self._lifecycle = state
        self._history.append(state)

    async def emit(self, event: str, payload: object = None) -> None:
        if self._event_bus is None:
            return
        await self._event_bus.put(
            LivesMessage(event=event, source=self._id, payload=payload)
        )

    def request_stop(self) -> None:
        """중지 요청 (로그아웃). 대기 중인 wait_stopped()가 즉시 깨어난다."""
        self._stop_event.set()

    async def wait_stopped(self, timeout: float) -> bool:
        """최대 timeout초 대기. 그 사이 중지 요청이 들어오면 True"""
        if self._stop_event.is_set():
            return True
        try:
            await asyncio.wait_for(
                asyncio.shield(self._stop_event.wait()),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return False
        return True

    async def setup(self) -> None:
        pass

    @abstractmethod
    async def run(self) -> None:
        ...

    async def teardown(self) -> None:
        pass

    async def start(self) -> None:
        if self._lifecycle != AgentLifecycle.INIT:
            self._logger.warning("이미 실행된 에이전트 (%s)", self._lifecycle.name)
            return

        try:
            await self.setup()
            self._enter(AgentLifecycle.READY)
            if not self.stop_requested:
                self._enter(AgentLifecycle.ACTIVE)
                await self.run()
        except Exception as e:
            self._logger.error("에이전트 실행 오류: %s", e)
            self._enter(AgentLifecycle.RECOVERING)
            raise
        finally:
            self._enter(AgentLifecycle.DRAINING)
            await self.teardown()
            self._enter(AgentLifecycle.OFF)
