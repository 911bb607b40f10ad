"""
Monitoring for ChatProp.

Components:
    PlaybackDiagnostics - Counters for absorbed signals, stale timers, resets
    StructuredLogger    - Take log: one structured record per playback event

Example:
    from chatprop.monitoring import StructuredLogger, attach_session_logger

    attach_session_logger(session, StructuredLogger(json_format=False))
    ...
    print(session.diagnostics.snapshot())
"""

from chatprop.monitoring.metrics import Counter, PlaybackDiagnostics
from chatprop.monitoring.logging import (
    StructuredLogger,
    LogLevel,
    LogRecord,
    attach_session_logger,
    configure_logging,
    get_logger,
)

__all__ = [
    # Metrics
    "Counter",
    "PlaybackDiagnostics",
    # Logging
    "StructuredLogger",
    "LogLevel",
    "LogRecord",
    "attach_session_logger",
    "configure_logging",
    "get_logger",
]
