"""Signal helpers for graceful shutdown."""

from __future__ import annotations

import signal
import sys
from typing import Any, Callable

from s3rolling.utils.logging import get_logger

logger = get_logger(__name__)


def _make_handler(callback: Callable[[], None], exit_after: bool) -> Callable[[int, Any], None]:
    def handler(signum: int, _frame: Any) -> None:
        logger.info("received_signal_shutting_down", signal=signum)
        callback()
        if exit_after:
            sys.exit(128 + signum)

    return handler


def setup_signal_handlers(on_stop: Any, exit_after: bool = True) -> None:
    """
    Register SIGINT/SIGTERM handlers.

    The `on_stop` object can provide a `shutdown`, `stop` or `close` method;
    otherwise the handler only logs the signal. With ``exit_after`` the
    handler then raises ``SystemExit`` so atexit hooks run as well, which a
    default SIGTERM would skip.
    """

    def _stop() -> None:
        for method_name in ("shutdown", "stop", "close"):
            method = getattr(on_stop, method_name, None)
            if callable(method):
                method()
                break

    handler = _make_handler(_stop, exit_after)
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, handler)
