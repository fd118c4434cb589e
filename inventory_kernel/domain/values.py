"""
Values -- closed enumerations and the acting-user reference.

Every "kind" in the reconciliation engine is a closed ``str`` Enum.  Code
that branches on a kind matches every member explicitly; adding a member
is a visible change at each match site.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ScanOutcome(str, Enum):
    """Classification of a single scan."""

    OK = "ok"
    WRONG_LOCATION = "wrong_location"
    UNEXPECTED = "unexpected"


class DiscrepancyKind(str, Enum):
    """Kind of a recorded SOLL/IST mismatch."""

    MISSING = "missing"
    WRONG_LOCATION = "wrong_location"
    UNEXPECTED = "unexpected"


class ItemCategory(str, Enum):
    """Category of an expected item."""

    SAMPLE = "sample"
    SUBSTANCE = "substance"

    @classmethod
    def from_primary_key(cls, primary_key: str) -> "ItemCategory":
        """Infer the category from the key prefix (M- sample, S- substance)."""
        if primary_key.startswith("S-"):
            return cls.SUBSTANCE
        return cls.SAMPLE


class UserRole(str, Enum):
    """Role tag supplied by the identity provider."""

    ADMIN = "admin"
    RESPONSIBLE = "responsible"
    USER = "user"


@dataclass(frozen=True)
class ActingUser:
    """
    Opaque reference to the user performing an operation.

    The kernel records the user on every mutation but does not authorize
    by role; the role is kept on the audit trail.
    """

    id: UUID
    name: str = ""
    role: UserRole = UserRole.USER
