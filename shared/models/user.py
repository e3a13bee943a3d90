from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from shared.constants import Role
from shared.constants.roles import ADMIN_ROLES


class CurrentUser(BaseModel):
    """Caller identity decoded from the bearer token."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    email: str
    roles: list[Role] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return any(r in ADMIN_ROLES for r in self.roles)
