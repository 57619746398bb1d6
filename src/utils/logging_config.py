"""로깅 설정

모든 로거는 "dharma." 아래에 둔다 (dharma.lives.*, dharma.agent.*, dharma.skill.*).
콘솔은 레벨별 ANSI 컬러, 파일은 무채색 상세 포맷.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "dharma"

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"

_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s │ %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# 요청마다 디버그 로그를 쏟아내는 라이브러리
_NOISY_LOGGERS = ("aiohttp", "asyncio")


class ColorFormatter(logging.Formatter):
    """레벨명에 컬러를 입히는 포매터. 레코드는 원상 복구한다."""

    def format(self, record: logging.LogRecord) -> str:
        plain = record.levelname
        color = _LEVEL_COLORS.get(record.levelno)
        if color:
            record.levelname = f"{color}{plain:<8}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    color: bool = True,
) -> logging.Logger:
    """루트 로깅 구성 후 "dharma" 로거 반환

    Args:
        level: DEBUG / INFO / WARNING / ERROR
        log_file: 파일 경로 (None이면 콘솔만)
        color: 콘솔 컬러 여부 (파이프 출력 시 끄기)
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    formatter_cls = ColorFormatter if color else logging.Formatter
    console.setFormatter(formatter_cls(fmt=_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(fmt=_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger(ROOT_LOGGER)
