"""Types for the summarization bridge."""

from dataclasses import dataclass
from typing import Literal

SummaryStatus = Literal["ok", "failed", "timeout", "extraction_failed"]


@dataclass
class SummaryResult:
    """Outcome of one blocking summarization request."""

    status: SummaryStatus
    summary: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok" and self.summary is not None

