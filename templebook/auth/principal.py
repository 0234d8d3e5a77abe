from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet

from templebook.enums import Role
from templebook.errors import PermissionDeniedError


class Capability(str, Enum):
    BOOK_TICKETS = "book_tickets"
    VERIFY_TICKETS = "verify_tickets"
    MANAGE_TEMPLES = "manage_temples"
    ADMINISTER = "administer"


ROLE_CAPABILITIES = {
    Role.USER: frozenset({Capability.BOOK_TICKETS}),
    Role.TEMPLE_BOARD: frozenset({Capability.VERIFY_TICKETS, Capability.MANAGE_TEMPLES}),
    Role.SUPERUSER: frozenset({Capability.ADMINISTER}),
}

DENIAL_MESSAGES = {
    Capability.BOOK_TICKETS: "Only users can create bookings",
    Capability.VERIFY_TICKETS: "Only temple board members can verify bookings",
    Capability.MANAGE_TEMPLES: "Only temple board members can manage temples",
    Capability.ADMINISTER: "Superuser access required",
}


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, passed explicitly into every core operation."""

    user_id: int
    role: Role
    is_approved: bool = True

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(user_id=user.id, role=Role(user.role), is_approved=bool(user.is_approved))

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        # Temple board accounts act only after a superuser approves them
        if self.role == Role.TEMPLE_BOARD and not self.is_approved:
            return frozenset()
        return ROLE_CAPABILITIES[self.role]

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> None:
        if self.has(capability):
            return
        if self.role == Role.TEMPLE_BOARD and not self.is_approved:
            raise PermissionDeniedError("Your account is pending approval")
        raise PermissionDeniedError(DENIAL_MESSAGES[capability])
