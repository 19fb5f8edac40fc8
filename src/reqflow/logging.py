"""structlogの設定。

stdioトランスポートではstdoutがMCPプロトコルに使われるため、ログは必ずstderrへ出力する。
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", *, json_logs: bool = False) -> None:
    """structlogのプロセッサチェーンを設定する。

    Args:
        level: ログレベル名（"DEBUG", "INFO" など）。
        json_logs: TrueならJSON、Falseなら人間向けのコンソール形式で出力する。
    """
    renderer: structlog.types.Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
