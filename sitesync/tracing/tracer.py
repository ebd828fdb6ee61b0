"""Event tracing for debugging provider and cache operations."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ContextManager, Generator, Protocol
from uuid import uuid4
import traceback

from sitesync.config import get_settings

# If set to True, this will dump out detailed tracebacks into the trace log when
# exceptions occur within traced functions. This is useful for debugging but may
# expose sensitive information, so it should be used with caution.
SHOW_TRACES_ON_ERROR = True


@dataclass
class TraceEvent:
    """A single trace event in the session."""

    timestamp: datetime
    message: str
    depth: int
    kwargs: dict[str, Any]
    duration_ms: float | None = None


class Session(Protocol):
    """Protocol for trace sessions."""

    def log(self, message: str, **kwargs: Any) -> None:
        """Log a message with optional key-value context."""
        ...

    def span(self, name: str) -> ContextManager[None]:
        """Create a nested span for tracking call hierarchy."""
        ...

    def finalize(self) -> None:
        """Finalize the session and output trace if debug enabled."""
        ...


class FunctionTrace(ContextManager[None]):
    """Context manager for tracing a function execution."""

    def __init__(self, session: Session | None, message: str, **kwargs: Any) -> None:
        self._session = session
        self._message = message
        self._kwargs = kwargs

    def __enter__(self) -> "FunctionTrace":
        self.log(self._message, _indent="", **self._kwargs)
        return self

    def __exit__(self, exc_type, exc_value, tb) -> None:
        if exc_type is not None and self._session is not None:
            self.log(f"Exception in {self._message}: {exc_value}")
            if SHOW_TRACES_ON_ERROR:
                trace = traceback.extract_tb(tb)
                for frame in trace:
                    self.log(f"  {frame.filename}:{frame.lineno} in {frame.name}")

    def log(self, message: str, _indent: str = "  ", **kwargs: Any) -> None:
        """Log an event within the function trace."""
        if self._session is not None:
            self._session.log(_indent + message, **kwargs)


@dataclass
class ActiveSession:
    """Active trace session that captures events."""

    session_id: str
    command: str | None
    start_time: datetime
    debug: bool = False  # If True, also print to console
    _events: list[TraceEvent] = field(default_factory=list)
    _current_depth: int = 0
    _span_stack: list[tuple[str, datetime]] = field(default_factory=list)

    @property
    def events(self) -> list[TraceEvent]:
        return list(self._events)

    def _print_event(self, event: TraceEvent) -> None:
        """Print an event to console."""
        indent = "  " * event.depth
        timestamp_str = event.timestamp.strftime("%H:%M:%S.%f")[:-3]
        data_str = ""
        if event.kwargs:
            data_parts = [f"{k}={v}" for k, v in event.kwargs.items()]
            data_str = " | " + ", ".join(data_parts)
        duration_str = ""
        if event.duration_ms is not None:
            duration_str = f" | {event.duration_ms:.0f}ms"
        print(f"[{timestamp_str}] {indent}{event.message}{data_str}{duration_str}")

    def _record(self, event: TraceEvent) -> None:
        self._events.append(event)
        if self.debug:
            self._print_event(event)

    def log(self, message: str, **kwargs: Any) -> None:
        """Log an event at the current nesting depth."""
        self._record(
            TraceEvent(
                timestamp=datetime.now(timezone.utc),
                message=message,
                depth=self._current_depth,
                kwargs=kwargs,
            )
        )

    @contextmanager
    def span(self, name: str) -> Generator[None, None, None]:  # type: ignore[override]
        """Create a nested span for hierarchical tracing."""
        start_time = datetime.now(timezone.utc)
        self._span_stack.append((name, start_time))
        self._record(
            TraceEvent(
                timestamp=start_time,
                message=f">>> {name}",
                depth=self._current_depth,
                kwargs={},
            )
        )
        self._current_depth += 1

        try:
            yield
        finally:
            self._current_depth -= 1
            span_name, span_start = self._span_stack.pop()
            end_time = datetime.now(timezone.utc)
            self._record(
                TraceEvent(
                    timestamp=end_time,
                    message=f"<<< {span_name}",
                    depth=self._current_depth,
                    kwargs={},
                    duration_ms=(end_time - span_start).total_seconds() * 1000,
                )
            )

    def finalize(self) -> None:
        """Print a one-line summary of the session in debug mode."""
        if not self.debug:
            return
        total_duration_ms = (
            datetime.now(timezone.utc) - self.start_time
        ).total_seconds() * 1000
        print(
            f"TRACE SESSION {self.session_id}: {self.command} | "
            f"{len(self._events)} events | {total_duration_ms:.2f}ms"
        )


class NoOpSession:
    """No-op session used when tracing is disabled. Zero overhead."""

    def log(self, message: str, **kwargs: Any) -> None:
        pass

    @contextmanager
    def span(self, name: str) -> Generator[None, None, None]:  # type: ignore[override]
        yield

    def finalize(self) -> None:
        pass


class EventTracer:
    """Factory for creating trace sessions. Initialized from settings."""

    _instance: "EventTracer | None" = None

    def __init__(self) -> None:
        settings = get_settings()
        self._debug_enabled = settings.debug

    @classmethod
    def get_instance(cls) -> "EventTracer":
        """Get or create the singleton EventTracer."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Useful for testing."""
        cls._instance = None

    @property
    def debug_enabled(self) -> bool:
        return self._debug_enabled

    def create_session(self, command: str | None = None) -> Session:
        """Create a new trace session.

        Returns NoOpSession when debug is disabled, or an ActiveSession that
        prints to the console when debug is enabled.
        """
        if not self._debug_enabled:
            return NoOpSession()

        return ActiveSession(
            session_id=str(uuid4()),
            command=command,
            start_time=datetime.now(timezone.utc),
            debug=True,
        )
