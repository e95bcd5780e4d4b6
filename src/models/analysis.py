"""
Streaming analysis event models and server-push framing.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AnalysisEventType(str, Enum):
    """Event types emitted by a streaming analysis session."""

    STATUS = "status"
    ANALYSIS = "analysis"
    METADATA = "metadata"
    ERROR = "error"
    DONE = "done"


class SessionState(str, Enum):
    """Streaming analysis session states."""

    CREATED = "created"
    CONTEXT_RETRIEVED = "context_retrieved"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.ERRORED, SessionState.CANCELLED)


class AnalysisEvent(BaseModel):
    """A typed event carrying a string payload (plain text, or JSON for metadata)."""

    model_config = ConfigDict(frozen=True)

    type: AnalysisEventType
    data: str = Field(default="")

    @property
    def is_terminal(self) -> bool:
        return self.type in (AnalysisEventType.DONE, AnalysisEventType.ERROR)

    def to_sse(self) -> str:
        return format_sse_event(self.type, self.data)


def format_sse_event(event_type: AnalysisEventType | str, data: str) -> str:
    """
    Frame an event for server-sent events.

    Produces `event: <type>` followed by one `data:` line per payload line and
    a terminating blank line. Multi-line payloads are split so the payload can
    never introduce a bare blank line into the stream.

    Args:
        event_type: Event type
        data: Payload text

    Returns:
        Framed event text
    """
    name = event_type.value if isinstance(event_type, AnalysisEventType) else str(event_type)
    lines = data.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    body = "".join(f"data: {line}\n" for line in lines)
    return f"event: {name}\n{body}\n"
