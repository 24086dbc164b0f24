from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CONTRACTOR = "contractor"


class WeekStart(str, Enum):
    SUNDAY = "sunday"
    MONDAY = "monday"


class ActiveFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


class Scope(str, Enum):
    """Query breadth toggle. Never widens what a role is authorized to see."""
    VISIBLE = "visible"
    ALL_ORG = "all_org"


class APIError(BaseModel):
    detail: Optional[str] = None
