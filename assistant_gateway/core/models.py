"""Domain models mirrored from the host session.

Layer: core (domain). No API dependencies.

Everything here is owned by the host application; the gateway only reads and
forwards these records. Field names are snake_case in Python and camelCase on
the wire.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def iso_from_millis(ts: int) -> str:
    """Render an epoch-milliseconds timestamp as ISO-8601 (UTC)."""
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).isoformat()


def now_millis() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


class Metrics(ApiModel):
    """Token and cost usage for one task (or a session total)."""

    tokens_in: int = 0
    tokens_out: int = 0
    cache_writes: Optional[int] = None
    cache_reads: Optional[int] = None
    total_cost: float = 0.0

    @classmethod
    def zero(cls) -> "Metrics":
        return cls(tokens_in=0, tokens_out=0, cache_writes=0, cache_reads=0, total_cost=0.0)


class ApiMetrics(ApiModel):
    """Running usage totals across the whole host session."""

    total_tokens_in: int = 0
    total_tokens_out: int = 0
    total_cache_writes: int = 0
    total_cache_reads: int = 0
    total_cost: float = 0.0

    def as_metrics(self) -> Metrics:
        return Metrics(
            tokens_in=self.total_tokens_in,
            tokens_out=self.total_tokens_out,
            cache_writes=self.total_cache_writes,
            cache_reads=self.total_cache_reads,
            total_cost=self.total_cost,
        )


class SessionMessage(ApiModel):
    """One entry of a task's message log.

    ``ask`` messages wait on the user (approval prompts, questions); ``say``
    messages are informational. ``partial`` marks a message still streaming.
    """

    ts: int
    type: Literal["ask", "say"]
    ask: Optional[str] = None
    say: Optional[str] = None
    text: Optional[str] = None
    images: Optional[List[str]] = None
    partial: Optional[bool] = None


class HistoryItem(ApiModel):
    """Task reference with its denormalized metrics snapshot."""

    id: str
    ts: int
    task: str
    tokens_in: int = 0
    tokens_out: int = 0
    cache_writes: Optional[int] = None
    cache_reads: Optional[int] = None
    total_cost: float = 0.0

    @property
    def metrics(self) -> Metrics:
        return Metrics(
            tokens_in=self.tokens_in,
            tokens_out=self.tokens_out,
            cache_writes=self.cache_writes,
            cache_reads=self.cache_reads,
            total_cost=self.total_cost,
        )

    @property
    def timestamp(self) -> str:
        return iso_from_millis(self.ts)

    def summary(self) -> Dict[str, Any]:
        """Shape used by history listings and search results."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "task": self.task,
            "metrics": self.metrics.to_wire(),
        }


class Diagnostic(ApiModel):
    """A single editor diagnostic reported by the host workspace."""

    path: str
    line: int
    message: str
    severity: str
    source: Optional[str] = None


class BrowserActionResult(ApiModel):
    """Outcome of one browser-automation step."""

    screenshot: Optional[str] = None
    logs: Optional[str] = None
    current_url: Optional[str] = None
    current_mouse_position: Optional[str] = None


class SessionState(ApiModel):
    """Full snapshot of the host session, as pushed to subscribers."""

    version: str = "unknown"
    messages: List[SessionMessage] = Field(default_factory=list)
    task_history: List[HistoryItem] = Field(default_factory=list)
    current_task_id: Optional[str] = None
    api_configuration: Dict[str, Any] = Field(default_factory=dict)
    custom_instructions: Optional[str] = None
    api_metrics: Optional[ApiMetrics] = None
    browser_sessions: List[Dict[str, Any]] = Field(default_factory=list)
