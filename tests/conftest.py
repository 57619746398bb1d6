"""pytest 공통 픽스처

고정 기준 시각(T0), 조작 가능한 시계, 설정, 메모리 저장소를 제공한다.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.models.config import LivesConfig
from src.models.pool import ResourcePool
from src.models.regen_queue import RegenerationQueue
from src.skills.store import InMemoryLivesStore

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
OWNER = "8c2d7a4e-0b7f-4f59-9d59-2b1f3f1c6a10"


def at(seconds: float) -> datetime:
    """T0 기준 상대 시각"""
    return T0 + timedelta(seconds=seconds)


def make_pool(current: int, *offsets: float, owner_id: str = OWNER) -> ResourcePool:
    return ResourcePool(
        owner_id=owner_id,
        current=current,
        pending=RegenerationQueue(tuple(at(s) for s in offsets)),
    )


class FakeClock:
    """수동으로 진행시키는 시계"""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def owner_id() -> str:
    return OWNER


@pytest.fixture
def sample_config() -> LivesConfig:
    """테스트용 설정 (피드백 채널 없음)"""
    return LivesConfig(feedback_methods=[])


@pytest.fixture
def fast_config() -> LivesConfig:
    """빠른 폴링 설정 (50ms)"""
    return LivesConfig(
        poll_interval=0.05,
        max_poll_interval=0.05,
        max_consecutive_errors=2,
        feedback_methods=[],
    )


@pytest.fixture
def memory_store() -> InMemoryLivesStore:
    return InMemoryLivesStore()


@pytest.fixture
def full_pool() -> ResourcePool:
    return ResourcePool.full(OWNER)
