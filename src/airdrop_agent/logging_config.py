"""
Logging setup for the airdrop API and CLI.

Every record carries the request ID and, once an endpoint has bound one,
the wallet being researched, so a single research run can be followed
through the agent call, the cache and any fallback.

``LOG_FORMAT=json`` emits one object per line; anything else is text.
"""

from __future__ import annotations

import json as json_mod
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from config import LOG_FORMAT, LOG_LEVEL, SERVICE_NAME

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")
wallet_ctx: ContextVar[str] = ContextVar("wallet", default="-")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(request_id)s %(wallet)s) %(message)s"

# Quiet loggers that would otherwise log each agent HTTP call at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def bind_wallet(wallet: Optional[str]) -> None:
    """Tag subsequent log lines in this request with *wallet*."""
    wallet_ctx.set(wallet or "-")


class _RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()  # type: ignore[attr-defined]
        record.wallet = wallet_ctx.get()  # type: ignore[attr-defined]
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, tagged with service, request and wallet."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", request_id_ctx.get()),
            "wallet": getattr(record, "wallet", wallet_ctx.get()),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json_mod.dumps(entry, default=str)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """(Re)configure the root logger; arguments win over LOG_LEVEL / LOG_FORMAT."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if (fmt or LOG_FORMAT) == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler.addFilter(_RequestIdFilter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def generate_request_id() -> str:
    """Twelve hex characters; short enough for the X-Request-ID header."""
    return uuid.uuid4().hex[:12]
