"""Event tracing package for debugging provider operations."""

from sitesync.tracing.tracer import (
    ActiveSession,
    EventTracer,
    FunctionTrace,
    NoOpSession,
    Session,
    TraceEvent,
)

__all__ = [
    "ActiveSession",
    "EventTracer",
    "FunctionTrace",
    "NoOpSession",
    "Session",
    "TraceEvent",
]
