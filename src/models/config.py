"""라이프 스케줄러 설정 모델"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class LivesConfig:
    """라이프 스케줄러 설정 - 용량/주기/저장소 파라미터"""

    # 풀 설정
    max_lives: int = 5
    regen_interval: float = 600.0           # 10분

    # Polling 설정 (기본: 30초 고정 주기)
    poll_interval: float = 30.0
    max_poll_interval: float = 30.0
    backoff_multiplier: float = 1.0
    jitter_range: float = 0.0
    max_consecutive_errors: int = 10

    # 원격 저장소 (Supabase PostgREST)
    store_url: str = ""
    store_api_key: str = ""
    store_table: str = "user_lives"

    # HTTP 설정
    request_timeout: float = 15.0
    connect_timeout: float = 5.0
    max_connections: int = 3

    # 피드백 설정
    feedback_methods: list[str] = field(default_factory=lambda: ["log"])
    webhook_url: str = ""

    def __post_init__(self) -> None:
        if self.max_lives < 1:
            raise ValueError("max_lives는 1 이상이어야 합니다")
        if self.regen_interval <= 0:
            raise ValueError("regen_interval은 0보다 커야 합니다")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval은 0보다 커야 합니다")
        if self.max_poll_interval < self.poll_interval:
            self.max_poll_interval = self.poll_interval

    @classmethod
    def from_env(cls) -> "LivesConfig":
        """환경 변수로 기본값을 덮어쓴 설정 생성"""
        base = cls()
        poll = float(
            os.environ.get("DHARMA_LIVES_POLL_INTERVAL", str(base.poll_interval))
        )
        return cls(
            max_lives=int(os.environ.get("DHARMA_LIVES_MAX", str(base.max_lives))),
            regen_interval=float(
                os.environ.get(
                    "DHARMA_LIVES_REGEN_INTERVAL", str(base.regen_interval),
                )
            ),
            poll_interval=poll,
            max_poll_interval=max(poll, base.max_poll_interval),
            store_url=os.environ.get("DHARMA_SUPABASE_URL", ""),
            store_api_key=os.environ.get("DHARMA_SUPABASE_KEY", ""),
            webhook_url=os.environ.get("DHARMA_WEBHOOK_URL", ""),
        )
