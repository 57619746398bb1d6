"""라이프 스케줄러 런타임 메트릭 수집"""

from __future__ import annotations

from time import monotonic


class LivesMetrics:
    """런타임 메트릭 수집"""

    __slots__ = (
        "deductions", "depletion_signals", "lives_regenerated",
        "sweeps", "store_errors", "resets",
        "_round_trips", "_start_time",
    )

    def __init__(self) -> None:
        self.deductions: int = 0
        self.depletion_signals: int = 0
        self.lives_regenerated: int = 0
        self.sweeps: int = 0
        self.store_errors: int = 0
        self.resets: int = 0
        self._round_trips: list[float] = []
        self._start_time: float = monotonic()

    @property
    def avg_round_trip_ms(self) -> float:
        if not self._round_trips:
            return 0.0
        return sum(self._round_trips) / len(self._round_trips)

    @property
    def session_duration_s(self) -> float:
        return monotonic() - self._start_time

    def record_round_trip(self, elapsed_ms: float) -> None:
        self._round_trips.append(elapsed_ms)
        # 최근 100개만 유지
        if len(self._round_trips) > 100:
            self._round_trips = self._round_trips[-50:]

    def record_deduction(self) -> None:
        self.deductions += 1

    def record_depletion(self) -> None:
        self.depletion_signals += 1

    def record_sweep(self, regenerated: int) -> None:
        self.sweeps += 1
        self.lives_regenerated += regenerated

    def record_store_error(self) -> None:
        self.store_errors += 1

    def record_reset(self) -> None:
        self.resets += 1

    def summary(self) -> str:
        duration = self.session_duration_s
        return (
            f"=== 라이프 세션 요약 ===\n"
            f"  경과 시간: {duration / 60:.1f}분\n"
            f"  차감: {self.deductions}회 (소진 신호 {self.depletion_signals}회)\n"
            f"  회복: {self.lives_regenerated}개 (점검 {self.sweeps}회)\n"
            f"  저장소 오류: {self.store_errors}회\n"
            f"  초기화: {self.resets}회\n"
            f"  평균 왕복: {self.avg_round_trip_ms:.0f}ms"
        )
