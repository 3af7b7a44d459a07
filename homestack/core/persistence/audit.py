"""
Audit ledger — append-only record of installation runs.

Every run appends one entry to an NDJSON (newline-delimited JSON) file
next to the generated config directory.  Entries are never modified or
deleted; the ledger answers "what did homestack do to this host, and
when".
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Iterator

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single audit log entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    operation_type: str = ""       # install, dry-run

    # What happened
    runtime: str = ""
    services: list[str] = Field(default_factory=list)         # install order
    services_skipped: list[str] = Field(default_factory=list)

    # Results
    status: str = ""               # ok, partial, failed
    commands_run: int = 0
    rollback_actions: int = 0
    duration_ms: int = 0

    errors: list[str] = Field(default_factory=list)

    context: dict[str, Any] = Field(default_factory=dict)
    @classmethod
    def from_report(cls, report: Any, operation_type: str, **context: Any) -> AuditEntry:
        """Summarize an ``InstallReport`` as one ledger line."""
        return cls(
            operation_id=report.operation_id,
            operation_type=operation_type,
            runtime=report.runtime,
            services=list(report.order),
            services_skipped=list(report.skipped),
            status=report.status,
            commands_run=report.commands_run,
            rollback_actions=report.rollback.attempted if report.rollback else 0,
            duration_ms=report.duration_ms,
            errors=[report.error["message"]] if report.error else [],
            context=context,
        )


class AuditWriter:
    """Ledger file handle: ``write`` appends, ``read_all`` replays.

    The file and its parent directories are created on first write.
    """

    def __init__(self, path: Path | None = None, state_dir: Path | None = None):
        self._path = path or (state_dir or Path.cwd()) / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append one entry. A failed write is logged, never raised."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as ledger:
                ledger.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error("Could not append to audit ledger %s: %s", self._path, e)
            return
        logger.debug("Audit: %s %s (%s)", entry.operation_type, entry.operation_id, entry.status)

    def read_all(self) -> list[AuditEntry]:
        """Every readable entry, oldest first."""
        if not self._path.is_file():
            return []
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Could not read audit ledger %s: %s", self._path, e)
            return []
        return list(_parse(text.splitlines()))


def _parse(lines: list[str]) -> Iterator[AuditEntry]:
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield AuditEntry.model_validate_json(line)
        except ValidationError as e:
            logger.warning("Skipping corrupt audit line %d: %s", number, e.errors()[0]["msg"])
