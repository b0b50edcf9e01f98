# SQLModel definitions, imported here so Alembic sees the full metadata.
from .base import UUIDMixin, TimestampMixin, CreatedAtMixin  # noqa: F401
from .user import User  # noqa: F401
from .organization import Organization  # noqa: F401
from .org_member import OrgMember, MemberAppAccess  # noqa: F401
from .group import Group, GroupMember, GroupAppAccess  # noqa: F401
from .entity import Entity  # noqa: F401
from .invitation import Invitation  # noqa: F401
from .subscription import Subscription  # noqa: F401
