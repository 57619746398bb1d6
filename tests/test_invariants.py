"""차감/회복 연산열에 대한 불변식 테스트

고정 시드 난수로 연산열을 만들고 매 단계 후 불변식을 검증한다.
"""

import random

import pytest
from conftest import at

from src.models.pool import MAX_LIVES, ResourcePool
from src.skills.consumption import consume
from src.skills.regeneration import sweep


def _check(pool: ResourcePool) -> None:
    assert 0 <= pool.current <= MAX_LIVES
    assert len(pool.pending) == MAX_LIVES - pool.current
    assert list(pool.pending) == sorted(pool.pending)


@pytest.mark.parametrize("seed", [1, 7, 42, 2024, 31337])
def test_random_operation_sequences(seed: int, full_pool: ResourcePool) -> None:
    rng = random.Random(seed)
    pool = full_pool
    now = 0.0

    for _ in range(300):
        now += rng.choice([0, 0, 1, 30, 120, 599, 600, 601, 1800])
        if rng.random() < 0.55:
            result = consume(pool, at(now))
            if result is None:
                assert pool.current == 0
            else:
                assert result.current == pool.current - 1
                pool = result
        else:
            pool = sweep(pool, at(now))
        _check(pool)


def test_refill_never_faster_than_interval(full_pool: ResourcePool) -> None:
    """연속 차감 후 매 600초마다 정확히 1개씩 회복"""
    pool = full_pool
    for _ in range(MAX_LIVES):
        result = consume(pool, at(0))
        assert result is not None
        pool = result

    for step in range(1, MAX_LIVES + 1):
        pool = sweep(pool, at(step * 600 - 1))
        assert pool.current == step - 1
        pool = sweep(pool, at(step * 600))
        assert pool.current == step
        _check(pool)
