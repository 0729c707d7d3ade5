from uuid import UUID

from pydantic import BaseModel, ConfigDict

from shared.constants import ADMIN_ROLES, CONTENT_STAFF_ROLES, TenantRole


class CurrentUser(BaseModel):
    """Caller identity from the JWT, scoped to the tenant the token was minted for."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    email: str
    tenant_id: UUID
    tenant_role: TenantRole = TenantRole.MEMBER

    @property
    def is_tenant_admin(self) -> bool:
        return self.tenant_role in ADMIN_ROLES

    @property
    def is_content_staff(self) -> bool:
        return self.tenant_role in CONTENT_STAFF_ROLES
