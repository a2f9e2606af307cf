"""Per-call audit trail.

Every tool call produces exactly one JSON line on stderr and, when
``GITHUB_PROJECTS_MCP_AUDIT_LOG_PATH`` is set, the same line in a size-capped
file. Events carry argument-derived targets only after redaction; tokens never
reach this module.
"""

from __future__ import annotations

import json
import sys
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

OUTCOMES = ("succeeded", "denied", "failed")


def new_correlation_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class AuditEvent:
    timestamp: str
    correlation_id: str
    operation: str
    target: str
    outcome: str
    reason: str | None
    duration_ms: int | None

    def to_json(self) -> str:
        fields: dict[str, Any] = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(fields, sort_keys=True, separators=(",", ":"))


def _shift_backups(path: Path, keep: int) -> None:
    """Move ``path`` to ``path.1`` (and ``.1`` to ``.2`` ...), dropping the oldest."""
    if keep <= 0:
        path.write_text("", encoding="utf-8")
        return
    Path(f"{path}.{keep}").unlink(missing_ok=True)
    for n in range(keep - 1, 0, -1):
        older = Path(f"{path}.{n}")
        if older.exists():
            older.replace(Path(f"{path}.{n + 1}"))
    path.replace(Path(f"{path}.1"))


class AuditLogger:
    """JSONL audit sink: stderr always, plus an optional rotating file."""

    def __init__(
        self,
        *,
        sink_path: Path | None,
        max_bytes: int = 5 * 1024 * 1024,
        max_backups: int = 2,
    ) -> None:
        self._sink_path = sink_path
        self._max_bytes = max_bytes
        self._max_backups = max_backups

    def _append(self, path: Path, line: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists() and path.stat().st_size >= self._max_bytes:
            _shift_backups(path, self._max_backups)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def write_event(self, event: AuditEvent) -> None:
        """Emit ``event``. A failing file sink is reported and never changes the tool's outcome."""
        line = event.to_json()
        print(line, file=sys.stderr)
        if self._sink_path is None:
            return
        try:
            self._append(self._sink_path, line)
        except OSError as exc:  # pragma: no cover
            print(f"audit sink write failed: {type(exc).__name__}", file=sys.stderr)

    def measure_start(self) -> float:
        return time.monotonic()

    def measure_duration_ms(self, start: float) -> int:
        return int((time.monotonic() - start) * 1000)


def build_event(
    *,
    correlation_id: str,
    operation: str,
    target: str,
    outcome: str,
    reason: str | None = None,
    duration_ms: int | None = None,
) -> AuditEvent:
    """Stamp an event with the current UTC time (RFC 3339, ``Z`` suffix)."""
    if outcome not in OUTCOMES:
        raise ValueError(f"unknown audit outcome: {outcome}")
    stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return AuditEvent(
        timestamp=stamp,
        correlation_id=correlation_id,
        operation=operation,
        target=target,
        outcome=outcome,
        reason=reason,
        duration_ms=duration_ms,
    )
