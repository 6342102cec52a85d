"""Usage domain types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UsageCounter:
    """Stored counter value. ``reset_at`` is in epoch seconds (0 when unknown)."""

    count: int
    reset_at: int

    def to_json(self) -> dict:
        return {"count": self.count, "resetAt": self.reset_at}


@dataclass(frozen=True)
class IncrementResult:
    """Outcome of an increment: the new counter and whether it is within the limit."""

    allowed: bool
    usage: UsageCounter

    @property
    def count(self) -> int:
        return self.usage.count

    @property
    def reset_at(self) -> int:
        return self.usage.reset_at
