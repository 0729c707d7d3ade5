from enum import Enum


class TenantRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    MEMBER = "member"


# Member management, course deletion
ADMIN_ROLES = frozenset({TenantRole.OWNER, TenantRole.ADMIN})

# Course / module / lesson authoring
CONTENT_STAFF_ROLES = frozenset({TenantRole.OWNER, TenantRole.ADMIN, TenantRole.INSTRUCTOR})
