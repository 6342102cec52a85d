"""Shared models used across the core, domains and API layers."""

from dataclasses import dataclass
from enum import Enum


class OwnerType(str, Enum):
    """Kind of principal that usage and credits are metered against."""

    USER = "user"
    GUEST = "guest"


class UserRole(str, Enum):
    """Roles forwarded by the authenticating gateway."""

    USER = "user"
    ADMIN = "admin"


class Tool(str, Enum):
    """Metered AI tools."""

    IMAGE = "image"
    VIDEO = "video"
    PROMPT = "prompt"
    VOICE = "voice"
    WEBSCRAPER = "webscraper"

    @property
    def key_prefix(self) -> str:
        """KV key namespace for this tool's counters."""
        return TOOL_KEY_PREFIXES[self]


TOOL_KEY_PREFIXES: dict[Tool, str] = {
    Tool.IMAGE: "ai",
    Tool.VIDEO: "video",
    Tool.PROMPT: "prompt",
    Tool.VOICE: "voice",
    Tool.WEBSCRAPER: "scraper",
}


@dataclass(frozen=True)
class Owner:
    """The user or guest a request is metered against."""

    owner_type: OwnerType
    owner_id: str

    @property
    def is_user(self) -> bool:
        return self.owner_type == OwnerType.USER

    @property
    def is_guest(self) -> bool:
        return self.owner_type == OwnerType.GUEST
