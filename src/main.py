"""라이프 스케줄러 - 디버그 CLI 진입점

사용 예시:
    python -m src.main --owner 1f0c... status
    python -m src.main --owner 1f0c... deduct -n 3
    python -m src.main --owner 1f0c... --memory watch
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from dataclasses import replace

from src.agents.lives_manager import DeductOutcome, LivesManager
from src.agents.session import LivesSession
from src.models.config import LivesConfig
from src.models.pool import ResourcePool
from src.skills.store import InMemoryLivesStore, LivesStore, SupabaseLivesStore
from src.utils.logging_config import setup_logging


BANNER = r"""
  ╔══════════════════════════════════════════════╗
  ║   Dharma 라이프 스케줄러 (debug)             ║
  ║   Lives regeneration scheduler               ║
  ╚══════════════════════════════════════════════╝
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Dharma 라이프 스케줄러 디버그 도구",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "환경 변수:\n"
            "  DHARMA_SUPABASE_URL, DHARMA_SUPABASE_KEY, DHARMA_WEBHOOK_URL,\n"
            "  DHARMA_LIVES_MAX, DHARMA_LIVES_REGEN_INTERVAL, "
            "DHARMA_LIVES_POLL_INTERVAL"
        ),
    )
    p.add_argument("--owner", required=True, help="소유자(사용자) ID")
    p.add_argument("--memory", action="store_true", help="메모리 저장소 사용")
    p.add_argument("--store-url", default=None, help="Supabase 프로젝트 URL")
    p.add_argument("--api-key", default=None, help="Supabase API 키")
    p.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="회복 점검 간격 초 (기본: 30)",
    )
    p.add_argument(
        "--feedback",
        default="log",
        help="피드백 방법 (log,sound,webhook 콤마 구분)",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    p.add_argument("--log-file", default=None, help="로그 파일 경로")
    p.add_argument("--no-color", action="store_true", help="콘솔 컬러 끄기")

    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="현재 라이프 / 카운트다운 표시")
    deduct = sub.add_parser("deduct", help="라이프 차감")
    deduct.add_argument("-n", "--count", type=int, default=1, help="차감 횟수")
    sub.add_parser("regenerate", help="수동 회복 점검")
    sub.add_parser("reset", help="라이프를 최대치로 초기화")
    sub.add_parser("watch", help="세션을 열고 주기적 회복을 관찰 (Ctrl+C 종료)")
    return p


def build_config(args: argparse.Namespace) -> LivesConfig:
    config = LivesConfig.from_env()
    methods = [m.strip() for m in args.feedback.split(",") if m.strip()]
    changes: dict[str, object] = {"feedback_methods": methods}
    if args.store_url:
        changes["store_url"] = args.store_url
    if args.api_key:
        changes["store_api_key"] = args.api_key
    if args.poll_interval is not None:
        changes["poll_interval"] = args.poll_interval
        changes["max_poll_interval"] = max(args.poll_interval, config.max_poll_interval)
    return replace(config, **changes)


def build_store(config: LivesConfig, use_memory: bool) -> LivesStore:
    if use_memory or not config.store_url:
        return InMemoryLivesStore(max_lives=config.max_lives)
    return SupabaseLivesStore(
        base_url=config.store_url,
        api_key=config.store_api_key,
        table=config.store_table,
        max_lives=config.max_lives,
        request_timeout=config.request_timeout,
        connect_timeout=config.connect_timeout,
        max_connections=config.max_connections,
    )


def render_status(manager: LivesManager) -> str:
    state = manager.state.name if manager.state else "UNKNOWN"
    return (
        f"  라이프: {manager.current_lives} / {manager.max_lives} ({state})\n"
        f"  다음 회복까지: {manager.formatted_time_until_next()}"
    )


async def run_command(args: argparse.Namespace, config: LivesConfig) -> int:
    """단발성 명령 실행 (폴링 없음)"""
    store = build_store(config, args.memory)
    manager = LivesManager(store, config)
    try:
        await manager.initialize_for_owner(args.owner)

        if args.command == "deduct":
            for _ in range(max(args.count, 1)):
                outcome = await manager.deduct()
                print(f"  차감 결과: {outcome.name}")
                if outcome != DeductOutcome.DEDUCTED:
                    break
        elif args.command == "regenerate":
            restored = await manager.manual_regeneration_check()
            print(f"  회복된 라이프: {restored}")
        elif args.command == "reset":
            ok = await manager.reset_to_full()
            print(f"  초기화: {'완료' if ok else '실패'}")

        print(render_status(manager))
        return 0 if manager.last_sync_ok else 1
    finally:
        await store.close()


async def watch(args: argparse.Namespace, config: LivesConfig) -> int:
    """세션 실행 (Ctrl+C까지)"""
    store = build_store(config, args.memory)
    stop_event = asyncio.Event()

    def _print_update(pool: ResourcePool) -> None:
        print(f"  [갱신] {pool.summary(config.max_lives)}")

    session = LivesSession(args.owner, store, config, on_update=_print_update)

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
        loop.add_signal_handler(signal.SIGTERM, stop_event.set)

    print("  세션 관찰 중 - 중지하려면 Ctrl+C를 누르세요\n")
    try:
        async with session:
            while not stop_event.is_set():
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=1.0)
                except asyncio.TimeoutError:
                    print(f"\r  다음 회복까지 {session.countdown()}", end="", flush=True)
            print()
    finally:
        await store.close()
    print(f"\n{session.metrics.summary()}")
    return 0


def cli_entry() -> None:
    """CLI 진입점 (pyproject.toml scripts에서 호출)"""
    main()


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(
        level=args.log_level, log_file=args.log_file, color=not args.no_color,
    )
    config = build_config(args)

    print(BANNER)

    try:
        if args.command == "watch":
            code = asyncio.run(watch(args, config))
        else:
            code = asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        print("\n  프로그램 종료")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
