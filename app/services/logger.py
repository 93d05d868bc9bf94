"""Loguru setup plus structured helpers for LLM calls, pipeline stages and DB writes.

Console output is human readable. The daily file under ``logs/`` is JSON lines
(``serialize=True``) so each helper's fields land in ``record.extra``.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger

from app.config import settings

LOG_DIR = Path("logs")
LOG_DIR.mkdir(exist_ok=True)

NOISY_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "hpack",
    "openai._base_client",
    "sse_starlette.sse",
    "postgrest",
    "asyncio",
)

logger.remove()
logger.configure(extra={"kind": "app"})

logger.add(
    sys.stderr,
    format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <magenta>{extra[kind]: <8}</magenta> | <level>{message}</level>",
    level=settings.app_log_level.upper(),
    colorize=True,
)

logger.add(
    LOG_DIR / "contentscope_{time:YYYY-MM-DD}.jsonl",
    level="DEBUG",
    serialize=True,
    rotation="00:00",
    retention="7 days",
    compression="zip",
)

for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(settings.noisy_log_level.upper())


def _emit(kind: str, level: str, message: str, **fields) -> None:
    fields.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    logger.bind(kind=kind, **fields).log(level, message)


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    total = input_tokens + output_tokens
    if error:
        _emit("llm", "ERROR", f"{caller} -> {model} failed after {duration_ms}ms: {error}",
              model=model, caller=caller, duration_ms=duration_ms, status=status, error=error)
        return
    _emit(
        "llm",
        "INFO",
        f"{caller} -> {model} {total} tokens in {duration_ms}ms",
        model=model,
        caller=caller,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=total,
        duration_ms=duration_ms,
        status=status,
    )


def log_pipeline_stage(
    run_id: str,
    stage: str,
    status: str,
    data: Optional[dict] = None,
) -> None:
    """One line per outline pipeline stage transition; failures log at WARNING."""
    level = "WARNING" if status == "failed" else "INFO"
    _emit("pipeline", level, f"[{run_id}] {stage} {status}", run_id=run_id, stage=stage, status=status, data=data or {})


def log_db_operation(
    operation: str,
    table: str,
    status: str,
    details: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    level = "ERROR" if error else "INFO"
    suffix = f": {error}" if error else (f" ({details})" if details else "")
    _emit("db", level, f"{operation} {table} {status}{suffix}",
          operation=operation, table=table, status=status, details=details, error=error)


def log_event(
    event_type: str,
    message: str,
    **kwargs,
) -> None:
    _emit("event", "INFO", f"{event_type}: {message}", event_type=event_type, **kwargs)
