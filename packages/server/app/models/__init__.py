# SQLModel definitions - imported here to ensure metadata is populated.
from .base import TimestampMixin, UUIDMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .profile import Profile  # noqa: F401
from .project import Project  # noqa: F401
from .membership import ProjectMember  # noqa: F401
