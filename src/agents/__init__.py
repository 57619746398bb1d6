"""에이전트 패키지

라이프 스케줄러 구성:
  LivesSession       - 로그인 단위 세션 (총괄)
  LivesManager       - 풀 상태 / 차감 / 회복 / 저장소 동기화
  RegenerationAgent  - 주기적 회복 점검
"""

from src.agents.base import BaseAgent, AgentLifecycle
from src.agents.lives_manager import DeductOutcome, LivesManager
from src.agents.regen_agent import RegenerationAgent, RegenState
from src.agents.session import LivesSession, SessionState

__all__ = [
    "BaseAgent",
    "AgentLifecycle",
    "DeductOutcome",
    "LivesManager",
    "RegenerationAgent",
    "RegenState",
    "LivesSession",
    "SessionState",
]
