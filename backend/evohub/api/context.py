"""HTTP API request context.

Created by ``deps.get_context()`` and injected into endpoints via ``Depends()``.
"""

from dataclasses import dataclass
from typing import Optional

from evohub.core.logging import ContextualLogger
from evohub.core.shared_models import Owner, UserRole
from evohub.domains.entitlements.types import Plan


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity asserted by the upstream gateway."""

    id: str
    email: Optional[str] = None
    plan: Plan = Plan.FREE
    role: UserRole = UserRole.USER


@dataclass
class ApiContext:
    """Request context: who is calling, from where, and a logger bound to both.

    ``owner`` is the principal usage is metered against: the signed-in user,
    or the guest identified by the guest cookie.
    """

    request_id: str
    owner: Owner
    ip_address: str
    logger: ContextualLogger
    user: Optional[AuthenticatedUser] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == UserRole.ADMIN

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def plan(self) -> Optional[Plan]:
        """The user's plan; None for guests."""
        return self.user.plan if self.user else None
