import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel

# Lowercase alphanumerics separated by single hyphens, no leading/trailing hyphen.
SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class Role(str, Enum):
    """Membership role within an organization.

    Members compare by privilege, not by their string value:
    ``Role.OWNER > Role.ADMIN > Role.MEMBER > Role.EXTERNAL``.
    """

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    EXTERNAL = "EXTERNAL"

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]

    def at_least(self, other: "Role") -> bool:
        return self.rank >= other.rank

    def __lt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank >= other.rank


ROLE_RANK: dict[Role, int] = {
    Role.OWNER: 4,
    Role.ADMIN: 3,
    Role.MEMBER: 2,
    Role.EXTERNAL: 1,
}

# Roles a member can be moved into (ownership transfer is not supported)
ASSIGNABLE_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.MEMBER, Role.EXTERNAL})

# Roles that see the whole catalog and manage org structure
MANAGER_ROLES: frozenset[Role] = frozenset({Role.OWNER, Role.ADMIN})


class OrgType(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    BUSINESS = "BUSINESS"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


# Statuses reported to the billing page (anything else is hidden)
VISIBLE_SUBSCRIPTION_STATUSES: tuple[SubscriptionStatus, ...] = (
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIALING,
    SubscriptionStatus.PAST_DUE,
)


class AppStatus(str, Enum):
    AVAILABLE = "available"
    COMING_SOON = "coming-soon"


class UserSummary(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int


class ErrorResponse(BaseModel):
    error: ErrorBody
