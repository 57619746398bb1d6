"""라이프 매니저 (LivesManager)

소유자 1명의 라이프 풀을 관리하는 컨텍스트 객체.
세션(로그인)마다 생성되며 프로세스 전역 싱글톤이 아니다.

모든 변경 연산은 하나의 asyncio.Lock으로 직렬화된다:
  fetch → 계산 → 저장 → 로컬 뷰 갱신이 끝나야 다음 연산이 시작된다.

저장소 실패는 경계에서 삼킨다 (로그 + STORE_ERROR 이벤트).
로컬 뷰는 마지막으로 성공한 상태를 유지한다.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum, auto
from time import monotonic
from typing import Optional

from src.agent.metrics import LivesMetrics
from src.agent.state import PoolState, classify, validate_transition
from src.models.config import LivesConfig
from src.models.events import LivesEvent, LivesMessage
from src.models.pool import ResourcePool
from src.skills.consumption import consume
from src.skills.countdown import format_countdown, seconds_until_next
from src.skills.regeneration import regenerated_count, sweep
from src.skills.store import LivesStore, StoreError
from src.utils.clock import Clock, utc_now

logger = logging.getLogger("dharma.lives.manager")


class DeductOutcome(Enum):
    DEDUCTED = auto()
    DEPLETED = auto()     # current == 0, 차감할 라이프 없음 (오류 아님)
    FAILED = auto()       # 저장소 오류, 로컬 상태 변경 없음
    NO_OWNER = auto()     # initialize_for_owner 전 호출


class LivesManager:
    """소유자별 라이프 풀 관리자"""

    SOURCE = "lives_manager"

    def __init__(
        self,
        store: LivesStore,
        config: Optional[LivesConfig] = None,
        *,
        clock: Clock = utc_now,
        metrics: Optional[LivesMetrics] = None,
        event_bus: Optional[asyncio.Queue[LivesMessage]] = None,
    ) -> None:
        self._store = store
        self._config = config or LivesConfig()
        self._clock = clock
        self._metrics = metrics or LivesMetrics()
        self._event_bus = event_bus
        self._lock = asyncio.Lock()

        self._owner_id: Optional[str] = None
        self._pool: Optional[ResourcePool] = None
        self._state: Optional[PoolState] = None
        self._is_loading = False
        self._last_sync_ok = True

    # ── Properties (UI에 노출되는 로컬 뷰) ──

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def pool(self) -> Optional[ResourcePool]:
        return self._pool

    @property
    def max_lives(self) -> int:
        return self._config.max_lives

    @property
    def current_lives(self) -> int:
        if self._pool is None:
            return self._config.max_lives
        return self._pool.current

    @property
    def next_regeneration_at(self) -> Optional[datetime]:
        return self._pool.next_regeneration_at if self._pool else None

    @property
    def state(self) -> Optional[PoolState]:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_sync_ok(self) -> bool:
        """마지막 저장소 연산의 성공 여부"""
        return self._last_sync_ok

    @property
    def metrics(self) -> LivesMetrics:
        return self._metrics

    @property
    def _interval(self) -> timedelta:
        return timedelta(seconds=self._config.regen_interval)

    # ── Public operations ──

    async def initialize_for_owner(self, owner_id: str) -> Optional[ResourcePool]:
        """활성 소유자 설정 후 fetch-or-create + 회복 점검

        여러 번 호출해도 안전하다. 기존 원격 풀을 FULL로 초기화하지 않는다.
        """
        # 진행 중인 이전 소유자의 연산이 끝난 뒤에 전환한다
        async with self._lock:
            if owner_id != self._owner_id:
                logger.info("소유자 설정: %s", owner_id)
                self._owner_id = owner_id
                self._pool = None
                self._state = None
        await self.check_and_regenerate()
        if self._pool is not None:
            logger.info(
                "초기화 완료 - 라이프: %s", self._pool.summary(self.max_lives),
            )
        return self._pool

    async def check_and_regenerate(self) -> int:
        """만료된 회복 항목을 반영. 회복된 라이프 수를 반환 (실패 시 0)"""
        async with self._lock:
            owner_id = self._owner_id
            if owner_id is None:
                logger.warning("소유자가 설정되지 않았습니다")
                return 0

            self._is_loading = True
            try:
                t0 = monotonic()
                fetched = await self._fetch_or_create(owner_id)
                now = self._clock()
                swept = sweep(fetched, now, max_lives=self.max_lives)
                regenerated = regenerated_count(fetched, swept)

                # 만료 항목이 없으면 쓰기 생략 (멱등)
                if swept != fetched:
                    swept = swept.with_updated_at(now)
                    await self._store.replace_pool(swept)
                self._metrics.record_round_trip((monotonic() - t0) * 1000)
            except StoreError as e:
                await self._handle_store_error("회복 점검", e)
                return 0
            finally:
                self._is_loading = False

            self._last_sync_ok = True
            self._metrics.record_sweep(regenerated)
            self._publish(swept)

        if regenerated:
            logger.info(
                "라이프 %d개 회복 - 현재 %s",
                regenerated, swept.summary(self.max_lives),
            )
            await self._emit(LivesEvent.LIVES_REGENERATED, {
                "regenerated": regenerated,
                "pool": swept,
            })
        else:
            logger.debug("회복 점검: 변화 없음 (%s)", swept.summary(self.max_lives))
        await self._emit(LivesEvent.LIVES_UPDATED, swept)
        return regenerated

    async def manual_regeneration_check(self) -> int:
        """디버그용 수동 회복 점검"""
        logger.info("수동 회복 점검 요청")
        return await self.check_and_regenerate()

    async def deduct(self) -> DeductOutcome:
        """라이프 1개 차감 (오답 시)

        항상 원격에서 새로 읽은 상태를 기준으로 계산한다.
        저장이 성공한 경우에만 로컬 뷰가 바뀐다.
        """
        async with self._lock:
            owner_id = self._owner_id
            if owner_id is None:
                logger.warning("소유자가 설정되지 않았습니다")
                return DeductOutcome.NO_OWNER

            try:
                t0 = monotonic()
                fetched = await self._fetch_or_create(owner_id)
                now = self._clock()
                consumed = consume(
                    fetched, now,
                    max_lives=self.max_lives,
                    interval=self._interval,
                )
                if consumed is not None:
                    consumed = consumed.with_updated_at(now)
                    await self._store.replace_pool(consumed)
                self._metrics.record_round_trip((monotonic() - t0) * 1000)
            except StoreError as e:
                await self._handle_store_error("라이프 차감", e)
                return DeductOutcome.FAILED

            self._last_sync_ok = True
            if consumed is None:
                # 원격 상태와 로컬 뷰 동기화
                self._publish(fetched)
                self._metrics.record_depletion()
                result = fetched
            else:
                self._publish(consumed)
                self._metrics.record_deduction()
                result = consumed

        if consumed is None:
            logger.warning("차감할 라이프가 없습니다 (0/%d)", self.max_lives)
            await self._emit(LivesEvent.LIVES_DEPLETED, result)
            await self._emit(LivesEvent.LIVES_UPDATED, result)
            return DeductOutcome.DEPLETED

        logger.info(
            "라이프 차감 - 현재 %s, 회복 예정 %s",
            result.summary(self.max_lives),
            result.pending.deadlines[-1].isoformat(),
        )
        await self._emit(LivesEvent.LIFE_DEDUCTED, result)
        if result.current == 0:
            await self._emit(LivesEvent.LIVES_DEPLETED, result)
        await self._emit(LivesEvent.LIVES_UPDATED, result)
        return DeductOutcome.DEDUCTED

    async def reset_to_full(self) -> bool:
        """관리/디버그용: current = max, 대기열 비움, 저장"""
        async with self._lock:
            owner_id = self._owner_id
            if owner_id is None:
                logger.warning("소유자가 설정되지 않았습니다")
                return False

            try:
                existing = await self._store.fetch_pool(owner_id)
                if existing is None:
                    pool = await self._store.create_pool(owner_id)
                else:
                    pool = ResourcePool.full(
                        owner_id, self.max_lives,
                    ).with_updated_at(self._clock())
                    await self._store.replace_pool(pool)
            except StoreError as e:
                await self._handle_store_error("라이프 초기화", e)
                return False

            self._last_sync_ok = True
            self._metrics.record_reset()
            self._publish(pool)

        logger.info("라이프 초기화 완료 - 모든 회복 예약 삭제")
        await self._emit(LivesEvent.LIVES_RESET, pool)
        await self._emit(LivesEvent.LIVES_UPDATED, pool)
        return True

    def time_until_next(self, now: Optional[datetime] = None) -> Optional[float]:
        """다음 회복까지 남은 초. 대기 없음이면 None (부수효과 없음)"""
        if self._pool is None:
            return None
        return seconds_until_next(self._pool, now or self._clock())

    def formatted_time_until_next(self, now: Optional[datetime] = None) -> str:
        """'MM:SS' 카운트다운, 대기 없음이면 '00:00'"""
        return format_countdown(self.time_until_next(now))

    # ── Internals ──

    async def _fetch_or_create(self, owner_id: str) -> ResourcePool:
        pool = await self._store.fetch_pool(owner_id)
        if pool is None:
            logger.info("라이프 기록 없음 → 새로 생성: %s", owner_id)
            pool = await self._store.create_pool(owner_id)
        return pool

    def _publish(self, pool: ResourcePool) -> None:
        """로컬 뷰 갱신 + 상태 전이 검증. 활성 소유자가 아닌 풀은 버린다."""
        if pool.owner_id != self._owner_id:
            logger.warning(
                "다른 소유자의 풀 무시: %s (활성: %s)", pool.owner_id, self._owner_id,
            )
            return
        new_state = classify(pool, self.max_lives)
        if self._state is not None and not validate_transition(self._state, new_state):
            logger.warning(
                "예상치 못한 상태 전이: %s → %s", self._state.name, new_state.name,
            )
        elif self._state is not None and self._state != new_state:
            logger.debug("풀 상태: %s → %s", self._state.name, new_state.name)
        self._state = new_state
        self._pool = pool

    async def _handle_store_error(self, op: str, error: StoreError) -> None:
        self._last_sync_ok = False
        self._metrics.record_store_error()
        logger.warning("%s 실패 (로컬 상태 유지): %s", op, error)
        await self._emit(LivesEvent.STORE_ERROR, {"operation": op, "error": str(error)})

    async def _emit(self, event: str, payload: object) -> None:
        if self._event_bus is None:
            return
        await self._event_bus.put(
            LivesMessage(event=event, source=self.SOURCE, payload=payload)
        )
