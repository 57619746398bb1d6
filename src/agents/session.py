"""라이프 세션 (LivesSession)

로그인 시 생성되고 로그아웃 시 정리되는 소유자 단위 컨텍스트.
  LivesManager       - 풀 상태 / 저장소 동기화
  RegenerationAgent  - 주기적 회복 점검 (취소 가능)
  FeedbackSkill      - 차감/소진/회복 피드백

이벤트 기반 통신:
  - 세션 전용 event_bus (asyncio.Queue)로 모든 메시지 수신
  - LIFE_DEDUCTED / LIVES_DEPLETED / LIVES_REGENERATED → 피드백
  - LIVES_UPDATED → on_update 콜백 (UI 재게시)
  - SESSION_STOP → 이벤트 루프 종료

라이프사이클: IDLE → RUNNING → STOPPING → STOPPED
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from time import monotonic
from typing import Callable, Optional

from src.agent.metrics import LivesMetrics
from src.agents.lives_manager import DeductOutcome, LivesManager
from src.agents.regen_agent import RegenerationAgent
from src.models.config import LivesConfig
from src.models.events import LivesEvent, LivesMessage
from src.models.pool import ResourcePool
from src.skills.feedback import FeedbackKind, FeedbackSkill
from src.skills.store import LivesStore
from src.utils.clock import Clock, utc_now

logger = logging.getLogger("dharma.lives.session")

UpdateListener = Callable[[ResourcePool], None]


class SessionState(Enum):
    IDLE = auto()
    RUNNING = auto()
    STOPPING = auto()
    STOPPED = auto()


class LivesSession:
    """소유자 세션

    단일 로그인 = 단일 LivesSession 인스턴스.
    `async with LivesSession(...)` 으로 시작/종료를 묶을 수 있다.
    저장소는 빌려 쓸 뿐이며 닫는 것은 저장소를 만든 쪽의 몫이다.
    """

    GRACEFUL_SHUTDOWN_TIMEOUT = 5.0  # 초

    def __init__(
        self,
        owner_id: str,
        store: LivesStore,
        config: Optional[LivesConfig] = None,
        *,
        clock: Clock = utc_now,
        feedback: Optional[FeedbackSkill] = None,
        on_update: Optional[UpdateListener] = None,
    ) -> None:
        self._owner_id = owner_id
        self._store = store
        self._config = config or LivesConfig()
        self._state = SessionState.IDLE
        self._metrics = LivesMetrics()
        self._on_update = on_update
        self._start_time = 0.0

        # 세션 전용 이벤트 버스
        self._event_bus: asyncio.Queue[LivesMessage] = asyncio.Queue()

        self._manager = LivesManager(
            store,
            self._config,
            clock=clock,
            metrics=self._metrics,
            event_bus=self._event_bus,
        )
        self._regen_agent = RegenerationAgent(
            self._manager,
            self._config,
            event_bus=self._event_bus,
        )
        self._feedback = feedback or FeedbackSkill(
            methods=self._config.feedback_methods,
            webhook_url=self._config.webhook_url,
            max_lives=self._config.max_lives,
        )

        self._tasks: list[asyncio.Task] = []  # type: ignore[type-arg]

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def manager(self) -> LivesManager:
        return self._manager

    @property
    def metrics(self) -> LivesMetrics:
        return self._metrics

    async def __aenter__(self) -> LivesSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ── Lifecycle ──

    async def start(self) -> Optional[ResourcePool]:
        """로그인: 풀 초기화 후 회복 점검 루프 시작"""
        if self._state != SessionState.IDLE:
            logger.debug("이미 시작된 세션: %s", self._state.name)
            return self._manager.pool

        self._state = SessionState.RUNNING
        self._start_time = monotonic()
        logger.info(
            "라이프 세션 시작: %s (최대 %d, 회복 %.0fs, 점검 %.0fs)",
            self._owner_id,
            self._config.max_lives,
            self._config.regen_interval,
            self._config.poll_interval,
        )

        event_task = asyncio.create_task(self._event_loop(), name="lives_events")
        self._tasks = [event_task]

        try:
            pool = await self._manager.initialize_for_owner(self._owner_id)
        except BaseException:
            event_task.cancel()
            await asyncio.gather(event_task, return_exceptions=True)
            self._tasks = []
            self._state = SessionState.STOPPED
            raise

        regen_task = asyncio.create_task(
            self._regen_agent.start(),
            name="regeneration_agent",
        )
        self._tasks.append(regen_task)
        return pool

    async def stop(self) -> None:
        """로그아웃: 폴링 취소 후 남은 이벤트 처리"""
        if self._state != SessionState.RUNNING:
            return

        logger.info("라이프 세션 종료 요청: %s", self._owner_id)
        self._state = SessionState.STOPPING
        self._regen_agent.request_stop()
        # 앞서 쌓인 이벤트를 모두 처리한 뒤 루프가 빠져나온다
        await self._event_bus.put(
            LivesMessage(event=LivesEvent.SESSION_STOP, source="session", payload=None)
        )

        try:
            await asyncio.wait_for(
                asyncio.gather(*self._tasks, return_exceptions=True),
                timeout=self.GRACEFUL_SHUTDOWN_TIMEOUT,
            )
        except asyncio.TimeoutError:
            logger.warning("강제 종료 (%.0fs 타임아웃)", self.GRACEFUL_SHUTDOWN_TIMEOUT)
            for task in self._tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            self._state = SessionState.STOPPED
            elapsed = monotonic() - self._start_time
            logger.info(
                "라이프 세션 종료 (%.1f분 경과)\n%s",
                elapsed / 60, self._metrics.summary(),
            )

    # ── Consumer-facing operations ──

    async def deduct(self) -> DeductOutcome:
        return await self._manager.deduct()

    async def reset_to_full(self) -> bool:
        return await self._manager.reset_to_full()

    def countdown(self) -> str:
        return self._manager.formatted_time_until_next()

    # ── Event handling ──

    async def _event_loop(self) -> None:
        """세션 이벤트 처리 루프"""
        while True:
            try:
                msg = await asyncio.wait_for(self._event_bus.get(), timeout=1.0)
            except asyncio.TimeoutError:
                if self._state == SessionState.STOPPED:
                    break
                continue

            if msg.event == LivesEvent.SESSION_STOP:
                logger.debug("SESSION_STOP 수신 → 이벤트 루프 종료")
                break
            await self._dispatch(msg)

    async def _dispatch(self, msg: LivesMessage) -> None:
        """이벤트 타입별 라우팅"""
        event = msg.event
        logger.debug("이벤트 수신: %s from %s", event, msg.source)

        if event == LivesEvent.LIVES_UPDATED:
            if self._on_update is not None and isinstance(msg.payload, ResourcePool):
                try:
                    self._on_update(msg.payload)
                except Exception as e:
                    logger.warning("on_update 콜백 오류: %s", e)

        elif event == LivesEvent.LIFE_DEDUCTED:
            if isinstance(msg.payload, ResourcePool):
                await self._feedback.send(FeedbackKind.INCORRECT_ANSWER, msg.payload)

        elif event == LivesEvent.LIVES_DEPLETED:
            if isinstance(msg.payload, ResourcePool):
                await self._feedback.send(FeedbackKind.DEPLETED, msg.payload)

        elif event == LivesEvent.LIVES_REGENERATED:
            payload = msg.payload
            if isinstance(payload, dict) and isinstance(payload.get("pool"), ResourcePool):
                await self._feedback.send(FeedbackKind.REGENERATED, payload["pool"])

        elif event == LivesEvent.STORE_ERROR:
            payload = msg.payload
            if isinstance(payload, dict):
                logger.debug("저장소 오류 이벤트: %s", payload.get("operation", "unknown"))

        elif event == LivesEvent.STORE_UNHEALTHY:
            payload = msg.payload
            if isinstance(payload, dict):
                logger.warning(
                    "저장소 연속 실패 %d회 - 마지막 상태로 표시 중",
                    payload.get("error_count", 0),
                )
