"""Caller identity and marketplace roles."""

from dataclasses import dataclass
from enum import Enum

from ..errors import AuthorizationError


class Role(Enum):
    """Marketplace roles."""

    EXPERT = "expert"          # Service provider
    SEEKER = "seeker"          # Client looking for expert services
    MODERATOR = "moderator"    # Reviews flagged content
    ADMIN = "admin"            # Platform administrator

    @property
    def can_moderate(self) -> bool:
        """Whether this role can decide on flagged content."""
        return self in (Role.MODERATOR, Role.ADMIN)

    @property
    def can_send_inquiries(self) -> bool:
        """Whether this role can open an inquiry with an expert."""
        return self == Role.SEEKER


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated user on whose behalf an operation runs."""

    user_id: str
    role: Role

    def __post_init__(self):
        if not self.user_id:
            raise AuthorizationError("An authenticated user is required")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_role(self, *roles: Role) -> None:
        """Raise AuthorizationError unless the caller holds one of the roles."""
        if self.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise AuthorizationError(
                f"Role {self.role.value} is not permitted (requires {allowed})"
            )

    def to_dict(self) -> dict:
        """Serialize identity to dictionary."""
        return {"user_id": self.user_id, "role": self.role.value}

    @classmethod
    def from_dict(cls, data: dict) -> "CallerIdentity":
        """Deserialize identity from dictionary."""
        return cls(user_id=data.get("user_id", ""), role=Role(data.get("role", "seeker")))
