"""원격 저장소 어댑터 스킬

라이프 풀의 원본(source of truth)은 원격 `user_lives` 테이블이다.
계약: fetch_pool / create_pool / replace_pool (소유자 키, 전체 덮어쓰기)

구현:
  InMemoryLivesStore  - 개발/테스트용 (실패 주입 지원)
  SupabaseLivesStore  - Supabase PostgREST API (aiohttp)
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

import aiohttp

from src.models.pool import MAX_LIVES, ResourcePool

logger = logging.getLogger("dharma.skill.store")


class StoreError(RuntimeError):
    """원격 저장소 호출 실패 (네트워크/저장소 오류, 해석할 수 없는 응답)"""


def decode_record(record: Any, max_lives: int) -> ResourcePool:
    """원격 행 해석. 형식이 깨진 행은 StoreError로 올린다."""
    try:
        return ResourcePool.from_record(record, max_lives)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise StoreError(f"라이프 기록 해석 실패: {e!r}") from e


class LivesStore(ABC):
    """원격 저장소 계약"""

    @abstractmethod
    async def fetch_pool(self, owner_id: str) -> Optional[ResourcePool]:
        """소유자의 풀 조회. 아직 없으면 None"""

    @abstractmethod
    async def create_pool(self, owner_id: str) -> ResourcePool:
        """current = max, 빈 대기열로 생성"""

    @abstractmethod
    async def replace_pool(self, pool: ResourcePool) -> None:
        """owner_id 기준 전체 상태 덮어쓰기 (부분 패치 아님)"""

    async def close(self) -> None:
        """리소스 정리 (선택적 오버라이드)"""


class InMemoryLivesStore(LivesStore):
    """메모리 저장소

    원격 행 형태(dict)로 보관하여 직렬화 왕복까지 재현한다.
    """

    def __init__(self, max_lives: int = MAX_LIVES) -> None:
        self._max_lives = max_lives
        self._rows: dict[str, dict[str, Any]] = {}
        self._fail_remaining = 0
        self.fetch_count = 0
        self.write_count = 0

    def fail_next(self, count: int = 1) -> None:
        """다음 count회의 호출을 StoreError로 실패시킨다"""
        self._fail_remaining = count

    def put_record(self, record: dict[str, Any]) -> None:
        """외부 기기/다른 클라이언트의 쓰기를 흉내낸다"""
        self._rows[str(record["user_id"])] = dict(record)

    def get_record(self, owner_id: str) -> Optional[dict[str, Any]]:
        row = self._rows.get(owner_id)
        return dict(row) if row is not None else None

    def _maybe_fail(self, op: str) -> None:
        if self._fail_remaining > 0:
            self._fail_remaining -= 1
            raise StoreError(f"{op} 실패 (주입된 오류)")

    async def fetch_pool(self, owner_id: str) -> Optional[ResourcePool]:
        self._maybe_fail("fetch")
        self.fetch_count += 1
        row = self._rows.get(owner_id)
        if row is None:
            return None
        return decode_record(row, self._max_lives)

    async def create_pool(self, owner_id: str) -> ResourcePool:
        self._maybe_fail("create")
        if owner_id in self._rows:
            raise StoreError(f"이미 존재하는 소유자: {owner_id}")
        pool = ResourcePool.full(owner_id, self._max_lives)
        self._rows[owner_id] = pool.to_record()
        return pool

    async def replace_pool(self, pool: ResourcePool) -> None:
        self._maybe_fail("replace")
        self.write_count += 1
        self._rows[pool.owner_id] = pool.to_record()


class SupabaseLivesStore(LivesStore):
    """Supabase PostgREST 저장소

    테이블 스키마: user_id (PK), current_lives, regeneration_times (text[]),
    updated_at. 모든 전송 오류는 StoreError로 변환된다.
    """

    REST_PATH: ClassVar[str] = "/rest/v1/"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "user_lives",
        max_lives: int = MAX_LIVES,
        request_timeout: float = 15.0,
        connect_timeout: float = 5.0,
        max_connections: int = 3,
    ) -> None:
        if not base_url:
            raise ValueError("Supabase URL이 설정되지 않았습니다")
        self._url = base_url.rstrip("/") + self.REST_PATH + table
        self._api_key = api_key
        self._max_lives = max_lives
        self._request_timeout = request_timeout
        self._connect_timeout = connect_timeout
        self._max_connections = max_connections
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def url(self) -> str:
        return self._url

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=self._request_timeout,
                connect=self._connect_timeout,
            )
            connector = aiohttp.TCPConnector(
                limit=self._max_connections,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers=self._headers(),
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        *,
        params: Optional[dict[str, str]] = None,
        json: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        session = await self._get_session()
        try:
            async with session.request(
                method, self._url, params=params, json=json, headers=headers,
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise StoreError(
                        f"{method} {self._url} 실패 [{resp.status}]: {body[:200]}"
                    )
                if resp.status == 204:
                    return None
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise StoreError(
                        f"{method} {self._url} 응답 해석 실패: {e!r}"
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StoreError(f"{method} {self._url} 전송 오류: {e!r}") from e

    async def fetch_pool(self, owner_id: str) -> Optional[ResourcePool]:
        rows = await self._request(
            "GET", params={"user_id": f"eq.{owner_id}", "select": "*"},
        )
        if not isinstance(rows, list):
            raise StoreError(f"예상치 못한 응답 형식: {type(rows).__name__}")
        if not rows:
            logger.debug("라이프 기록 없음: %s", owner_id)
            return None
        return decode_record(rows[0], self._max_lives)

    async def create_pool(self, owner_id: str) -> ResourcePool:
        pool = ResourcePool.full(owner_id, self._max_lives)
        rows = await self._request(
            "POST",
            json=pool.to_record(),
            headers={"Prefer": "return=representation"},
        )
        logger.info("라이프 기록 생성: %s", owner_id)
        if isinstance(rows, list) and rows:
            return decode_record(rows[0], self._max_lives)
        return pool

    async def replace_pool(self, pool: ResourcePool) -> None:
        await self._request(
            "PATCH",
            params={"user_id": f"eq.{pool.owner_id}"},
            json=pool.to_record(),
            headers={"Prefer": "return=minimal"},
        )
