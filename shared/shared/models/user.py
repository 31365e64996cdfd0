from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from shared.constants import Role


class CurrentUser(BaseModel):
    """Caller identity decoded from the auth provider's access token.

    ``roles`` is parsed only so the token round-trips; no feed route is
    role-gated.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    email: str | None = None
    roles: list[Role] = Field(default_factory=list)
