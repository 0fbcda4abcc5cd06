"""Event emitter writing typed NDJSON observability events."""

import os
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from pydantic import BaseModel, Field


class EventLevel(str, Enum):
    """Event levels for structured logging."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"


class EventAction(str, Enum):
    """Standard event actions."""

    START = "start"
    TICK = "tick"
    COMPLETE = "complete"
    ERROR = "error"


class StreamEvent(BaseModel):
    """Typed schema for value stream events."""

    ts: str = Field(..., description="ISO 8601 timestamp with Z suffix")
    run_id: str = Field(..., description="Unique run identifier")
    phase: str = Field(..., description="Phase name (values, rows, stats)")
    component: str = Field(..., description="Component name")
    pid: int = Field(..., description="Process ID")
    worker_id: str = Field(..., description="Worker identifier")
    level: EventLevel = Field(..., description="Event level")
    action: EventAction = Field(..., description="Event action")
    duration_ms: Optional[int] = Field(None, description="Duration in milliseconds")

    sourcefile: Optional[str] = None
    bytes: Optional[int] = None
    reason: Optional[str] = None

    metadata: Dict[str, Any] = Field(default_factory=dict)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_run_id(prefix: str = "scan") -> str:
    return f"{prefix}_{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}_{os.getpid()}"


class EventEmitter:
    """Append StreamEvent lines to <log_dir>/<run_id>/events.ndjson."""

    def __init__(
        self,
        run_id: str,
        phase: str,
        component: str,
        log_dir: Optional[str] = None,
    ):
        self.run_id = run_id
        self.phase = phase
        self.component = component
        self.pid = os.getpid()
        self.worker_id = f"{self.component}-{self.pid}"

        self.log_dir = Path(log_dir) if log_dir else Path("var/logs")
        self.run_log_dir = self.log_dir / run_id
        self.run_log_dir.mkdir(parents=True, exist_ok=True)
        self.events_path = self.run_log_dir / "events.ndjson"

        self._file: Optional[TextIO] = None
        self._start_time = time.time()

    def __enter__(self):
        self._file = open(self.events_path, "a", encoding="utf-8")
        self._start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._file:
            self._file.close()
            self._file = None

    def elapsed_ms(self) -> int:
        return int((time.time() - self._start_time) * 1000)

    def _emit(
        self,
        action: EventAction,
        level: EventLevel = EventLevel.INFO,
        duration_ms: Optional[int] = None,
        **kwargs,
    ) -> Optional[StreamEvent]:
        if not self._file:
            return None

        event = StreamEvent(
            ts=_utc_now(),
            run_id=self.run_id,
            phase=self.phase,
            component=self.component,
            pid=self.pid,
            worker_id=self.worker_id,
            level=level,
            action=action,
            duration_ms=duration_ms,
            sourcefile=kwargs.pop("sourcefile", None),
            bytes=kwargs.pop("bytes", None),
            reason=kwargs.pop("reason", None),
            metadata=kwargs,
        )
        self._file.write(event.model_dump_json(exclude_none=True) + "\n")
        self._file.flush()
        return event

    def start(self, sourcefile: Optional[str] = None, **kwargs):
        """Emit a start event."""
        return self._emit(EventAction.START, sourcefile=sourcefile, **kwargs)

    def tick(self, processed: int, **kwargs):
        """Emit a progress tick."""
        return self._emit(EventAction.TICK, values=processed, **kwargs)

    def complete(self, **kwargs):
        """Emit a completion event with the elapsed duration."""
        return self._emit(
            EventAction.COMPLETE, duration_ms=self.elapsed_ms(), **kwargs
        )

    def error(self, message: str, **kwargs):
        """Emit an error event."""
        return self._emit(
            EventAction.ERROR,
            level=EventLevel.ERROR,
            duration_ms=self.elapsed_ms(),
            reason=message,
            **kwargs,
        )
