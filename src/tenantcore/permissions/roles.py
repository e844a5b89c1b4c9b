"""Role resolver: which roles exist in which kind of tenant, and their labels.

Provides:
- ``roles_for()`` — ordered legal roles for a business type.
- ``enrollable_roles()`` — the subset obtainable through the staff secret.
- ``role_label()`` / ``business_type_label()`` — display names.
- ``ROLE_HIERARCHY`` / ``has_role_level()`` — seniority comparison.

UI code asks these functions for labels and choices instead of keeping
its own tables.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import BusinessType, Role


@dataclass(frozen=True)
class RoleOption:
    """A selectable role with its display label."""

    role: Role
    label: str


ROLE_LABELS: dict[Role, str] = {
    Role.OWNER: "Business Owner",
    Role.CO_FOUNDER: "Co-Founder",
    Role.MANAGER: "Manager",
    Role.STAFF: "Staff Member",
    Role.ACCOUNTANT: "Accountant",
    Role.SALES_EXECUTIVE: "Sales Executive",
    Role.INVENTORY_MANAGER: "Inventory Manager",
    Role.DELIVERY_STAFF: "Delivery Staff",
    Role.HR: "HR Staff",
    Role.PRODUCTION: "Production Staff",
    Role.STORE_STAFF: "Store Staff",
    Role.SALES_STAFF: "Sales Staff",
}

BUSINESS_TYPE_LABELS: dict[BusinessType, str] = {
    BusinessType.RETAILER: "Retail Store",
    BusinessType.ECOMMERCE: "E-commerce",
    BusinessType.MANUFACTURER: "Manufacturing",
    BusinessType.WHOLESALER: "Wholesale Distribution",
    BusinessType.SERVICE: "Service Business",
    BusinessType.DISTRIBUTOR: "Distribution",
    BusinessType.TRADER: "Trading Business",
}

# Higher number = more senior.
ROLE_HIERARCHY: dict[Role, int] = {
    Role.OWNER: 100,
    Role.CO_FOUNDER: 90,
    Role.MANAGER: 70,
    Role.ACCOUNTANT: 60,
    Role.SALES_EXECUTIVE: 50,
    Role.INVENTORY_MANAGER: 50,
    Role.HR: 50,
    Role.STAFF: 10,
    Role.DELIVERY_STAFF: 10,
    Role.PRODUCTION: 10,
    Role.STORE_STAFF: 10,
    Role.SALES_STAFF: 10,
}

# Roles every tenant has, in display order.
_SHARED_ROLES: tuple[Role, ...] = (
    Role.OWNER,
    Role.CO_FOUNDER,
    Role.MANAGER,
    Role.STAFF,
    Role.ACCOUNTANT,
    Role.SALES_EXECUTIVE,
    Role.INVENTORY_MANAGER,
    Role.DELIVERY_STAFF,
    Role.HR,
    Role.STORE_STAFF,
    Role.SALES_STAFF,
)

# Extra roles that only exist for some business types.
BUSINESS_TYPE_ROLES: dict[BusinessType, tuple[Role, ...]] = {
    BusinessType.MANUFACTURER: (Role.PRODUCTION,),
}

# Never obtainable by presenting the staff secret.
RESERVED_ROLES: frozenset[Role] = frozenset({Role.OWNER, Role.CO_FOUNDER})


def roles_for(business_type: BusinessType | str) -> list[RoleOption]:
    """Ordered list of roles that may legally exist in a tenant of this type.

    Args:
        business_type: A :class:`BusinessType` or its string value.

    Returns:
        ``RoleOption`` list, shared roles first, type-specific roles last.

    Raises:
        ValueError: If ``business_type`` is not a known business type.

    Example::

        [opt.role for opt in roles_for("manufacturer")][-1]  # Role.PRODUCTION
        Role.PRODUCTION in {o.role for o in roles_for("retailer")}  # False
    """
    bt = BusinessType(business_type)
    roles = _SHARED_ROLES + BUSINESS_TYPE_ROLES.get(bt, ())
    return [RoleOption(role=role, label=ROLE_LABELS[role]) for role in roles]


def is_role_legal(business_type: BusinessType | str, role: Role | str) -> bool:
    """Whether ``role`` may exist in a tenant of ``business_type``.

    Unknown role strings are simply not legal.
    """
    try:
        wanted = Role(role)
    except ValueError:
        return False
    return any(opt.role == wanted for opt in roles_for(business_type))


def enrollable_roles(business_type: BusinessType | str) -> list[RoleOption]:
    """Roles a user may receive when joining with the staff secret."""
    return [opt for opt in roles_for(business_type) if opt.role not in RESERVED_ROLES]


def role_label(role: Role | str) -> str:
    """Display name for a role; unknown roles read as a plain staff member."""
    try:
        return ROLE_LABELS[Role(role)]
    except ValueError:
        return ROLE_LABELS[Role.STAFF]


def business_type_label(business_type: BusinessType | str) -> str:
    """Display name for a business type."""
    try:
        return BUSINESS_TYPE_LABELS[BusinessType(business_type)]
    except ValueError:
        return "Business"


def has_role_level(role: Role | str, required: Role | str) -> bool:
    """True if ``role`` is at least as senior as ``required``.

    Unknown roles rank below everything.
    """
    try:
        have = ROLE_HIERARCHY[Role(role)]
    except ValueError:
        return False
    return have >= ROLE_HIERARCHY[Role(required)]


__all__ = [
    "BUSINESS_TYPE_LABELS",
    "BUSINESS_TYPE_ROLES",
    "RESERVED_ROLES",
    "ROLE_HIERARCHY",
    "ROLE_LABELS",
    "RoleOption",
    "business_type_label",
    "enrollable_roles",
    "has_role_level",
    "is_role_legal",
    "role_label",
    "roles_for",
]
