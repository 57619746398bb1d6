"""라이프 풀 상태 머신 테스트"""

from conftest import make_pool

from src.agent.state import PoolState, classify, validate_transition


class TestClassify:
    def test_full(self, full_pool):
        assert classify(full_pool) == PoolState.FULL

    def test_depleting(self):
        assert classify(make_pool(3, 100, 200)) == PoolState.DEPLETING

    def test_empty(self):
        assert classify(make_pool(0, 1, 2, 3, 4, 5)) == PoolState.EMPTY

    def test_out_of_range_clamped(self):
        assert classify(make_pool(-1)) == PoolState.EMPTY
        assert classify(make_pool(12)) == PoolState.FULL


class TestStateTransitions:
    def test_full_to_depleting(self):
        assert validate_transition(PoolState.FULL, PoolState.DEPLETING)

    def test_depleting_to_empty(self):
        assert validate_transition(PoolState.DEPLETING, PoolState.EMPTY)

    def test_depleting_to_full(self):
        assert validate_transition(PoolState.DEPLETING, PoolState.FULL)

    def test_empty_to_depleting(self):
        assert validate_transition(PoolState.EMPTY, PoolState.DEPLETING)

    def test_empty_to_full(self):
        assert validate_transition(PoolState.EMPTY, PoolState.FULL)

    def test_noop_sweep_keeps_state(self):
        for state in PoolState:
            assert validate_transition(state, state)

    def test_no_terminal_state(self):
        for state in PoolState:
            others = [s for s in PoolState if s != state]
            assert any(validate_transition(state, s) for s in others)

    def test_invalid_full_to_empty(self):
        assert not validate_transition(PoolState.FULL, PoolState.EMPTY)
