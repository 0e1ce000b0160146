from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class RequestContext:
    """Who is calling, resolved once per request and passed down explicitly."""

    user_id: int
    role: Role
    roles: frozenset[Role] = field(default_factory=frozenset)
    trainer_id: Optional[int] = None
    member_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.role not in self.roles:
            object.__setattr__(self, "roles", frozenset(self.roles | {self.role}))

    @classmethod
    def for_user(cls, user_id: int, role: Role) -> "RequestContext":
        user_id = int(user_id)
        return cls(
            user_id=user_id,
            role=role,
            roles=frozenset({role}),
            trainer_id=user_id if role == Role.TRAINER else None,
            member_id=user_id if role in (Role.MEMBER, Role.GUEST) else None,
        )

    @classmethod
    def from_session(cls, session: Mapping) -> Optional["RequestContext"]:
        if "user_id" not in session or not session.get("role"):
            return None
        return cls.for_user(int(session["user_id"]), Role(session["role"]))

    def has_role(self, *roles: Role) -> bool:
        return any(r in self.roles for r in roles)
