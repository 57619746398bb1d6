"""RegenerationAgent 단위 테스트"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from conftest import OWNER, FakeClock

from src.agents.base import AgentLifecycle
from src.agents.lives_manager import LivesManager
from src.agents.regen_agent import RegenerationAgent, RegenState
from src.models.config import LivesConfig
from src.models.events import LivesEvent
from src.skills.store import InMemoryLivesStore


@pytest.fixture
def manager(memory_store: InMemoryLivesStore, fast_config: LivesConfig, clock: FakeClock) -> LivesManager:
    return LivesManager(memory_store, fast_config, clock=clock)


class TestRegenerationAgentInit:
    def test_initial_state(self, manager: LivesManager, fast_config: LivesConfig) -> None:
        agent = RegenerationAgent(manager, fast_config)
        assert agent.regen_state == RegenState.WAITING
        assert agent.tick_count == 0
        assert agent.consecutive_errors == 0
        assert agent.lifecycle == AgentLifecycle.INIT


class TestRegenerationAgentTick:
    @pytest.mark.asyncio
    async def test_tick_regenerates(
        self, manager: LivesManager, fast_config: LivesConfig, clock: FakeClock,
    ) -> None:
        await manager.initialize_for_owner(OWNER)
        await manager.deduct()
        clock.advance(600)

        agent = RegenerationAgent(manager, fast_config)
        had_error = await agent._tick_once()

        assert not had_error
        assert agent.tick_count == 1
        assert manager.current_lives == 5

    @pytest.mark.asyncio
    async def test_tick_error_increments_counter(
        self,
        manager: LivesManager,
        fast_config: LivesConfig,
        memory_store: InMemoryLivesStore,
    ) -> None:
        await manager.initialize_for_owner(OWNER)
        agent = RegenerationAgent(manager, fast_config)

        memory_store.fail_next(1)
        assert await agent._tick_once() is True
        assert agent.consecutive_errors == 1

        assert await agent._tick_once() is False
        assert agent.consecutive_errors == 0

    @pytest.mark.asyncio
    async def test_unhealthy_event_on_max_errors(
        self,
        manager: LivesManager,
        fast_config: LivesConfig,
        memory_store: InMemoryLivesStore,
    ) -> None:
        await manager.initialize_for_owner(OWNER)
        bus: asyncio.Queue = asyncio.Queue()
        agent = RegenerationAgent(manager, fast_config, event_bus=bus)

        memory_store.fail_next(fast_config.max_consecutive_errors + 1)
        for _ in range(fast_config.max_consecutive_errors + 1):
            await agent._tick_once()

        events = []
        while not bus.empty():
            events.append((await bus.get()).event)

        # 임계값 도달 시 1회만 발행
        assert events.count(LivesEvent.STORE_UNHEALTHY) == 1


class TestRegenerationAgentLoop:
    @pytest.mark.asyncio
    async def test_loop_polls_until_stopped(
        self, manager: LivesManager, fast_config: LivesConfig,
    ) -> None:
        await manager.initialize_for_owner(OWNER)
        agent = RegenerationAgent(manager, fast_config)

        task = asyncio.create_task(agent.start())
        await asyncio.sleep(0.2)
        agent.request_stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert agent.tick_count >= 1
        assert agent.lifecycle == AgentLifecycle.OFF

    @pytest.mark.asyncio
    async def test_stop_before_first_tick(
        self, manager: LivesManager,
    ) -> None:
        config = LivesConfig(poll_interval=30.0, feedback_methods=[])
        agent = RegenerationAgent(manager, config)

        task = asyncio.create_task(agent.start())
        await asyncio.sleep(0.01)
        agent.request_stop()
        await asyncio.wait_for(task, timeout=1.0)

        assert agent.tick_count == 0


class TestAgentLifecycle:
    @pytest.mark.asyncio
    async def test_history_without_error(self, manager: LivesManager) -> None:
        agent = RegenerationAgent(manager, LivesConfig(feedback_methods=[]))
        agent.request_stop()
        await agent.start()

        # 시작 전에 중지 요청이 있으면 ACTIVE를 건너뛴다
        assert agent.lifecycle_history == [
            AgentLifecycle.INIT,
            AgentLifecycle.READY,
            AgentLifecycle.DRAINING,
            AgentLifecycle.OFF,
        ]

    @pytest.mark.asyncio
    async def test_start_twice_is_ignored(
        self, manager: LivesManager, fast_config: LivesConfig,
    ) -> None:
        await manager.initialize_for_owner(OWNER)
        agent = RegenerationAgent(manager, fast_config)
        agent.request_stop()
        await agent.start()
        history = agent.lifecycle_history

        await agent.start()
        assert agent.lifecycle_history == history


class TestRegenerationAgentResilience:
    @pytest.mark.asyncio
    async def test_corrupt_row_keeps_polling(
        self,
        manager: LivesManager,
        fast_config: LivesConfig,
        memory_store: InMemoryLivesStore,
        clock: FakeClock,
    ) -> None:
        """해석할 수 없는 원격 행이 있어도 루프가 살아 있고, 복구되면 반영한다"""
        await manager.initialize_for_owner(OWNER)
        memory_store.put_record({
            "user_id": OWNER,
            "current_lives": 3,
            "regeneration_times": ["garbage"],
        })
        agent = RegenerationAgent(manager, fast_config)
        task = asyncio.create_task(agent.start())

        await asyncio.sleep(0.15)
        assert not task.done()
        assert agent.lifecycle == AgentLifecycle.ACTIVE
        assert agent.consecutive_errors >= 1
        assert manager.last_sync_ok is False

        memory_store.put_record({
            "user_id": OWNER,
            "current_lives": 3,
            "regeneration_times": [clock().isoformat()],
        })
        await asyncio.sleep(0.15)
        assert manager.current_lives == 4
        assert agent.consecutive_errors == 0

        agent.request_stop()
        await asyncio.wait_for(task, timeout=1.0)
        assert AgentLifecycle.RECOVERING not in agent.lifecycle_history

    @pytest.mark.asyncio
    async def test_unexpected_exception_counts_as_error(
        self, manager: LivesManager, fast_config: LivesConfig,
    ) -> None:
        await manager.initialize_for_owner(OWNER)
        agent = RegenerationAgent(manager, fast_config)

        with patch.object(
            manager, "check_and_regenerate",
            new_callable=AsyncMock, side_effect=RuntimeError("boom"),
        ):
            assert await agent._tick_once() is True

        assert agent.consecutive_errors == 1
        assert agent.regen_state == RegenState.WAITING
