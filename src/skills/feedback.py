"""피드백 스킬: Sound / Webhook / Log

라이프 차감·소진·회복 시 사용자에게 신호를 보낸다 (햅틱 대체).
채널별로 병렬 발송하며 개별 채널 실패는 격리된다.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from src.models.pool import MAX_LIVES, ResourcePool

logger = logging.getLogger("dharma.skill.feedback")


class FeedbackKind:
    INCORRECT_ANSWER = "incorrect_answer"
    DEPLETED = "depleted"
    REGENERATED = "regenerated"


_TITLES: dict[str, str] = {
    FeedbackKind.INCORRECT_ANSWER: "라이프 -1",
    FeedbackKind.DEPLETED: "라이프 소진",
    FeedbackKind.REGENERATED: "라이프 회복",
}


@dataclass(frozen=True, slots=True)
class FeedbackPayload:
    """피드백 페이로드"""

    kind: str
    title: str
    message: str


class FeedbackSkill:
    """다채널 피드백 스킬"""

    __slots__ = ("_methods", "_webhook_url", "_max_lives")

    def __init__(
        self,
        methods: Optional[list[str]] = None,
        webhook_url: str = "",
        max_lives: int = MAX_LIVES,
    ) -> None:
        self._methods = methods if methods is not None else ["log"]
        self._webhook_url = webhook_url
        self._max_lives = max_lives

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    def build_payload(self, kind: str, pool: ResourcePool) -> FeedbackPayload:
        message = f"남은 라이프 {pool.current}/{self._max_lives}"
        if kind == FeedbackKind.DEPLETED:
            message += " - 회복될 때까지 기다려 주세요"
        return FeedbackPayload(
            kind=kind,
            title=_TITLES.get(kind, kind),
            message=message,
        )

    async def send(self, kind: str, pool: ResourcePool) -> None:
        payload = self.build_payload(kind, pool)

        tasks: list[asyncio.Task[None]] = []
        for method in self._methods:
            if method == "log":
                tasks.append(asyncio.ensure_future(self._log_notify(payload)))
            elif method == "sound":
                tasks.append(asyncio.ensure_future(self._sound_notify(payload)))
            elif method == "webhook":
                tasks.append(
                    asyncio.ensure_future(
                        self._webhook_notify(payload, self._webhook_url)
                    )
                )

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.warning("피드백 채널 실패: %s", result)

    @staticmethod
    async def _log_notify(payload: FeedbackPayload) -> None:
        logger.info("[%s] %s", payload.title, payload.message)

    @staticmethod
    async def _sound_notify(payload: FeedbackPayload) -> None:
        """터미널 벨 (차감 1회, 소진 3회)"""
        count = 3 if payload.kind == FeedbackKind.DEPLETED else 1
        print("\a" * count, end="", flush=True)

    @staticmethod
    async def _webhook_notify(
        payload: FeedbackPayload,
        webhook_url: str,
    ) -> None:
        """Webhook 알림 (Slack/Discord)"""
        if not webhook_url:
            return

        try:
            async with aiohttp.ClientSession() as session:
                await session.post(
                    webhook_url,
                    json={
                        "text": f"*{payload.title}*\n{payload.message}",
                        "kind": payload.kind,
                    },
                    timeout=aiohttp.ClientTimeout(total=10),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Webhook 피드백 실패: %s", e)
