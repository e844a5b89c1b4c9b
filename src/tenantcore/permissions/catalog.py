"""Role → capability mapping and its resolution.

Provides:
- ``BASE_CAPABILITIES`` — granted to every mapped role.
- ``ROLE_CAPABILITIES`` — role → capability set, shared by all business types.
- ``BUSINESS_TYPE_GRANTS`` — extra capabilities a role gets in one business type.
- ``capabilities_for()`` — the total ``(business_type, role)`` lookup.
- ``effective_capabilities()`` — adds the owner bypass.
- ``validate_catalog()`` — totality / closed-vocabulary check.
"""

from __future__ import annotations

import logging

from ..config import get_config
from ..exceptions import ConfigurationError
from .constants import BusinessType, Capabilities as C, Role
from .roles import is_role_legal, roles_for

logger = logging.getLogger(__name__)

BASE_CAPABILITIES: tuple[str, ...] = (
    C.VIEW_DASHBOARD,
    C.VIEW_BASIC_ANALYTICS,
    C.VIEW_INVENTORY,
    C.VIEW_ORDERS,
)

# ── Role → capabilities ─────────────────────────────────

ROLE_CAPABILITIES: dict[Role, tuple[str, ...]] = {
    Role.OWNER: (
        C.VIEW_ALL_MODULES,
        C.CREATE_ALL,
        C.EDIT_ALL,
        C.DELETE_ALL,
        C.VIEW_ADVANCED_ANALYTICS,
        C.VIEW_FINANCIAL_DATA,
        C.MANAGE_USERS,
        C.MANAGE_SETTINGS,
        C.EXPORT_REPORTS,
        C.VIEW_AI_ASSISTANT,
        C.MANAGE_BUSINESS_SETTINGS,
        C.ADD_EDIT_DELETE_PRODUCTS,
        C.VIEW_ADD_EDIT_ORDERS,
        C.FINANCIAL_REPORTS,
        C.ASSIGN_TASKS_OR_ROUTES,
        C.HR_AND_STAFF_ATTENDANCE,
        C.MANAGE_ASSETS_LIABILITIES,
        C.AI_ASSISTANT_ACCESS,
        C.BUSINESS_PROFILE_SETUP,
        C.QR_CODE_SCANNER,
        C.ASSET_TRACKER,
        C.AUTO_BACKUP_RESTORE,
        C.PERFORMANCE_DASHBOARD,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
        C.LEAVE_AND_ATTENDANCE,
        C.ACTIVITY_LOGS,
        C.MULTI_BRANCH_SUPPORT,
        C.SETTINGS_AREA,
        C.DATA_IMPORT_EXPORT,
        C.MANAGE_TEAM,
        C.CREATE_BASIC,
        C.EDIT_ASSIGNED,
        C.VIEW_OWN_DATA,
    ),
    Role.CO_FOUNDER: (
        C.VIEW_MOST_MODULES,
        C.CREATE_MOST,
        C.EDIT_MOST,
        C.VIEW_ADVANCED_ANALYTICS,
        C.VIEW_FINANCIAL_DATA,
        C.MANAGE_USERS,
        C.EXPORT_REPORTS,
        C.VIEW_AI_ASSISTANT,
        C.ADD_EDIT_DELETE_PRODUCTS,
        C.VIEW_ADD_EDIT_ORDERS,
        C.FINANCIAL_REPORTS,
        C.ASSIGN_TASKS_OR_ROUTES,
        C.HR_AND_STAFF_ATTENDANCE,
        C.MANAGE_ASSETS_LIABILITIES,
        C.AI_ASSISTANT_ACCESS,
        C.BUSINESS_PROFILE_SETUP,
        C.QR_CODE_SCANNER,
        C.ASSET_TRACKER,
        C.PERFORMANCE_DASHBOARD,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
        C.LEAVE_AND_ATTENDANCE,
        C.ACTIVITY_LOGS,
        C.MULTI_BRANCH_SUPPORT,
        C.SETTINGS_AREA,
        C.DATA_IMPORT_EXPORT,
        C.MANAGE_TEAM,
    ),
    Role.MANAGER: (
        C.VIEW_DEPARTMENT_MODULES,
        C.CREATE_DEPARTMENT,
        C.EDIT_DEPARTMENT,
        C.VIEW_TEAM_ANALYTICS,
        C.MANAGE_TEAM,
        C.EXPORT_TEAM_REPORTS,
        C.VIEW_AI_ASSISTANT,
        C.ADD_EDIT_DELETE_PRODUCTS,
        C.VIEW_ADD_EDIT_ORDERS,
        C.ASSIGN_TASKS_OR_ROUTES,
        C.HR_AND_STAFF_ATTENDANCE,
        C.AI_ASSISTANT_ACCESS,
        C.BUSINESS_PROFILE_SETUP,
        C.QR_CODE_SCANNER,
        C.PERFORMANCE_DASHBOARD,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
        C.LEAVE_AND_ATTENDANCE,
        C.ACTIVITY_LOGS,
        C.MANAGE_SETTINGS,
    ),
    Role.STAFF: (
        C.VIEW_ASSIGNED_MODULES,
        C.CREATE_BASIC,
        C.EDIT_ASSIGNED,
        C.VIEW_OWN_DATA,
        C.VIEW_ADD_EDIT_ORDERS,
        C.ASSIGN_TASKS_OR_ROUTES,
        C.QR_CODE_SCANNER,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
    ),
    Role.ACCOUNTANT: (
        C.VIEW_FINANCIAL_MODULES,
        C.CREATE_FINANCIAL,
        C.EDIT_FINANCIAL,
        C.VIEW_FINANCIAL_ANALYTICS,
        C.EXPORT_FINANCIAL_REPORTS,
        C.VIEW_AI_ASSISTANT,
        C.VIEW_FINANCIAL_DATA,
        C.FINANCIAL_REPORTS,
        C.AI_ASSISTANT_ACCESS,
        C.BUSINESS_PROFILE_SETUP,
        C.QR_CODE_SCANNER,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
        C.DATA_IMPORT_EXPORT,
    ),
    Role.SALES_EXECUTIVE: (
        C.VIEW_SALES_MODULES,
        C.CREATE_SALES,
        C.EDIT_SALES,
        C.VIEW_SALES_ANALYTICS,
        C.MANAGE_CUSTOMERS,
        C.EXPORT_SALES_REPORTS,
        C.VIEW_AI_ASSISTANT,
        C.VIEW_ADD_EDIT_ORDERS,
        C.ASSIGN_TASKS_OR_ROUTES,
        C.AI_ASSISTANT_ACCESS,
        C.BUSINESS_PROFILE_SETUP,
        C.QR_CODE_SCANNER,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
    ),
    Role.INVENTORY_MANAGER: (
        C.VIEW_INVENTORY_MODULES,
        C.ADD_EDIT_DELETE_PRODUCTS,
        C.VIEW_INVENTORY_ANALYTICS,
        C.MANAGE_STOCK,
        C.EXPORT_INVENTORY_REPORTS,
        C.QR_CODE_SCANNER,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
        C.ASSIGN_TASKS_OR_ROUTES,
    ),
    Role.DELIVERY_STAFF: (
        C.VIEW_DELIVERY_MODULES,
        C.VIEW_ADD_EDIT_ORDERS,
        C.UPDATE_DELIVERY_STATUS,
        C.QR_CODE_SCANNER,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
    ),
    Role.HR: (
        C.VIEW_HR_MODULES,
        C.HR_AND_STAFF_ATTENDANCE,
        C.MANAGE_STAFF,
        C.VIEW_STAFF_ANALYTICS,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
        C.PERFORMANCE_DASHBOARD,
        C.LEAVE_AND_ATTENDANCE,
    ),
    Role.PRODUCTION: (
        C.VIEW_PRODUCTION_MODULES,
        C.MANAGE_PRODUCTION,
        C.VIEW_PRODUCTION_ANALYTICS,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
        C.RAW_MATERIAL_INVENTORY,
        C.RECIPE_MANAGEMENT,
        C.PRODUCTION_WORKFLOW,
        C.PRODUCTION_LOGS,
    ),
    Role.STORE_STAFF: (
        C.VIEW_STORE_MODULES,
        C.VIEW_ADD_EDIT_ORDERS,
        C.BASIC_INVENTORY_ACCESS,
        C.QR_CODE_SCANNER,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
    ),
    Role.SALES_STAFF: (
        C.VIEW_SALES_MODULES,
        C.VIEW_ADD_EDIT_ORDERS,
        C.MANAGE_CUSTOMERS,
        C.VIEW_COMMISSION,
        C.QR_CODE_SCANNER,
        C.TASK_AND_TODO_MANAGER,
        C.INTERNAL_TEAM_CHAT,
    ),
}

# ── Business type → role → extra capabilities ───────────
# Manufacturing screens are open to leadership as well as production staff.

_MANUFACTURING_LEAD: tuple[str, ...] = (
    C.VIEW_PRODUCTION_MODULES,
    C.MANAGE_PRODUCTION,
    C.VIEW_PRODUCTION_ANALYTICS,
    C.RAW_MATERIAL_INVENTORY,
    C.RECIPE_MANAGEMENT,
    C.PRODUCTION_WORKFLOW,
    C.PRODUCTION_LOGS,
)

BUSINESS_TYPE_GRANTS: dict[BusinessType, dict[Role, tuple[str, ...]]] = {
    BusinessType.MANUFACTURER: {
        Role.OWNER: _MANUFACTURING_LEAD,
        Role.CO_FOUNDER: _MANUFACTURING_LEAD,
        Role.MANAGER: _MANUFACTURING_LEAD,
        Role.INVENTORY_MANAGER: (C.RAW_MATERIAL_INVENTORY,),
    },
}


def capabilities_for(
    business_type: BusinessType | str,
    role: Role | str,
    *,
    strict: bool | None = None,
) -> frozenset[str]:
    """Capability set mapped to ``(business_type, role)``.

    Pure and deterministic. A role that is not legal for the business type
    (corrupt data, or a tenant whose type changed after the role was
    assigned) yields the empty set; it never yields everything.

    Args:
        business_type: Tenant business type.
        role: The user's role.
        strict: Raise on a legal-but-unmapped role. ``None`` follows
            ``get_config().is_development``.

    Returns:
        Frozenset of capability keys.

    Raises:
        ConfigurationError: Legal role with no mapping, in strict mode.

    Example::

        C.FINANCIAL_REPORTS in capabilities_for("retailer", "accountant")  # True
        capabilities_for("retailer", "production")                         # frozenset()
    """
    try:
        bt = BusinessType(business_type)
    except ValueError:
        logger.warning("Unknown business type %r: no capabilities", business_type)
        return frozenset()

    if not is_role_legal(bt, role):
        logger.warning("Role %r is not legal for %s tenants: no capabilities", role, bt.value)
        return frozenset()

    r = Role(role)
    mapped = ROLE_CAPABILITIES.get(r)
    if mapped is None:
        if strict is None:
            strict = get_config().is_development
        if strict:
            raise ConfigurationError(
                f"No capability mapping for ({bt.value}, {r.value})",
                business_type=bt.value,
                role=r.value,
            )
        logger.error("No capability mapping for (%s, %s): degrading to no capabilities", bt.value, r.value)
        return frozenset()

    extra = BUSINESS_TYPE_GRANTS.get(bt, {}).get(r, ())
    return frozenset(BASE_CAPABILITIES) | frozenset(mapped) | frozenset(extra)


def effective_capabilities(
    business_type: BusinessType | str,
    role: Role | str,
    is_owner: bool,
    *,
    strict: bool | None = None,
) -> frozenset[str]:
    """Capabilities a session actually holds.

    The tenant owner holds the whole catalog regardless of mapping, so a
    stale or incomplete table can never lock them out.
    """
    if is_owner:
        return C.ALL
    return capabilities_for(business_type, role, strict=strict)


def validate_catalog() -> None:
    """Check the mapping is total and uses only declared keys.

    Raises:
        ConfigurationError: Listing every defect found.
    """
    problems: list[str] = []
    for bt in BusinessType:
        for option in roles_for(bt):
            if option.role not in ROLE_CAPABILITIES:
                problems.append(f"unmapped ({bt.value}, {option.role.value})")

    declared = [*BASE_CAPABILITIES]
    for caps in ROLE_CAPABILITIES.values():
        declared.extend(caps)
    for grants in BUSINESS_TYPE_GRANTS.values():
        for caps in grants.values():
            declared.extend(caps)
    for cap in sorted(set(declared) - C.ALL):
        problems.append(f"undeclared capability {cap!r}")

    if problems:
        raise ConfigurationError("Capability catalog is invalid: " + "; ".join(problems), problems=problems)


__all__ = [
    "BASE_CAPABILITIES",
    "BUSINESS_TYPE_GRANTS",
    "ROLE_CAPABILITIES",
    "capabilities_for",
    "effective_capabilities",
    "validate_catalog",
]
