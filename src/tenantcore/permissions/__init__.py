"""Permission catalog and role vocabulary for tenantcore.

Defines:
- BusinessType, Role: the closed vocabularies
- Capabilities: every capability key the console checks
- roles_for() / enrollable_roles(): roles legal in a business type
- ROLE_CAPABILITIES / capabilities_for(): role → capability resolution
- validate_catalog(): totality and closed-vocabulary check

The business module table lives in ``tenantcore.permissions.modules``.
"""

from .catalog import (
    BASE_CAPABILITIES,
    BUSINESS_TYPE_GRANTS,
    ROLE_CAPABILITIES,
    capabilities_for,
    effective_capabilities,
    validate_catalog,
)
from .constants import BusinessType, Capabilities, Role
from .roles import (
    BUSINESS_TYPE_LABELS,
    BUSINESS_TYPE_ROLES,
    RESERVED_ROLES,
    ROLE_HIERARCHY,
    ROLE_LABELS,
    RoleOption,
    business_type_label,
    enrollable_roles,
    has_role_level,
    is_role_legal,
    role_label,
    roles_for,
)

__all__ = [
    "BASE_CAPABILITIES",
    "BUSINESS_TYPE_GRANTS",
    "BUSINESS_TYPE_LABELS",
    "BUSINESS_TYPE_ROLES",
    "BusinessType",
    "Capabilities",
    "RESERVED_ROLES",
    "ROLE_CAPABILITIES",
    "ROLE_HIERARCHY",
    "ROLE_LABELS",
    "Role",
    "RoleOption",
    "business_type_label",
    "capabilities_for",
    "effective_capabilities",
    "enrollable_roles",
    "has_role_level",
    "is_role_legal",
    "role_label",
    "roles_for",
    "validate_catalog",
]
