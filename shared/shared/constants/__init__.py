from shared.constants.roles import ADMIN_ROLES, CONTENT_STAFF_ROLES, TenantRole

__all__ = ["ADMIN_ROLES", "CONTENT_STAFF_ROLES", "TenantRole"]
