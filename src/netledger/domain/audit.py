"""Audit sinks for ledger operation outcomes.

Services report every mutation outcome (action, affected id, success) to an
audit sink. Recording is fire-and-forget: a failing sink is logged and never
fails or blocks the ledger operation that triggered it.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("netledger.audit")


class AuditSink:
    """Base sink. Subclasses implement ``write``."""

    def record(self, action: str, resource: str, success: bool) -> None:
        """Record an operation outcome without ever raising."""
        try:
            self.write(action, resource, success)
        except Exception as e:
            logger.warning("Audit sink failed for %s %s: %s", action, resource, e)

    def write(self, action: str, resource: str, success: bool) -> None:
        raise NotImplementedError


class LoggingAuditSink(AuditSink):
    """Send audit entries to the ``netledger.audit`` logger."""

    def write(self, action: str, resource: str, success: bool) -> None:
        level = logging.INFO if success else logging.WARNING
        audit_logger.log(level, "action=%s resource=%s success=%s", action, resource, success)


class FileAuditSink(AuditSink):
    """Append one line per entry to an audit log file."""

    def __init__(self, path: Path):
        self.path = path

    def write(self, action: str, resource: str, success: bool) -> None:
        line = (
            f"[{datetime.now().isoformat(timespec='seconds')}] "
            f"Action:{action} Resource:{resource} Success:{str(success).lower()}\n"
        )
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line)


class NullAuditSink(AuditSink):
    """Discard audit entries."""

    def write(self, action: str, resource: str, success: bool) -> None:
        pass


def default_audit_sink(path: Optional[Path] = None) -> AuditSink:
    """File sink when a path is given, logging sink otherwise."""
    if path is not None:
        return FileAuditSink(path)
    return LoggingAuditSink()
