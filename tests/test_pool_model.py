"""ResourcePool 모델 테스트"""

from conftest import OWNER, T0, at, make_pool

from src.models.pool import MAX_LIVES, REGEN_INTERVAL, ResourcePool


class TestDefaults:
    def test_constants(self):
        assert MAX_LIVES == 5
        assert REGEN_INTERVAL.total_seconds() == 600

    def test_full(self):
        pool = ResourcePool.full(OWNER)
        assert pool.current == MAX_LIVES
        assert len(pool.pending) == 0
        assert pool.next_regeneration_at is None


class TestClamp:
    def test_negative_clamped_to_zero(self):
        assert make_pool(-2).clamped().current == 0

    def test_over_max_clamped(self):
        assert make_pool(9).clamped().current == MAX_LIVES

    def test_in_range_returns_same_object(self):
        pool = make_pool(3, 100, 200)
        assert pool.clamped() is pool


class TestRecord:
    def test_to_record_shape(self):
        pool = make_pool(4, 600).with_updated_at(T0)
        record = pool.to_record()
        assert record["user_id"] == OWNER
        assert record["current_lives"] == 4
        assert record["regeneration_times"] == [at(600).isoformat()]
        assert record["updated_at"] == T0.isoformat()

    def test_from_record_round_trip(self):
        pool = make_pool(2, 600, 1200, 1800).with_updated_at(T0)
        assert ResourcePool.from_record(pool.to_record()) == pool

    def test_from_record_clamps_foreign_write(self):
        pool = ResourcePool.from_record({
            "user_id": OWNER,
            "current_lives": 7,
            "regeneration_times": [],
            "updated_at": None,
        })
        assert pool.current == MAX_LIVES

    def test_from_record_sorts_queue(self):
        pool = ResourcePool.from_record({
            "user_id": OWNER,
            "current_lives": 3,
            "regeneration_times": [at(1200).isoformat(), at(600).isoformat()],
        })
        assert pool.next_regeneration_at == at(600)

    def test_from_record_missing_fields(self):
        pool = ResourcePool.from_record({"user_id": OWNER})
        assert pool.current == MAX_LIVES
        assert len(pool.pending) == 0
        assert pool.updated_at is None


class TestSummary:
    def test_summary_full(self):
        assert ResourcePool.full(OWNER).summary().startswith("5/5")

    def test_summary_with_pending(self):
        assert "09:10:00" in make_pool(4, 600).summary()
