"""Business module table: the protected screens of the console.

Each ``BusinessModule`` declares which business types offer it and the
``Requirement`` a session must satisfy to open it. Navigation and route
protection both go through ``allow()``, so a link is shown exactly when
the screen behind it would open.

Requirements are built at import time, so a module naming a capability
outside the catalog fails on import with ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..exceptions import ConfigurationError
from ..guard import NO_REQUIREMENT, OWNER_ONLY, Requirement, all_of, allow, require_capability
from .constants import BusinessType, Capabilities as C

if TYPE_CHECKING:
    from ..session import Session


class ModuleCategory(str, Enum):
    SALES = "sales"
    INVENTORY = "inventory"
    CUSTOMER = "customer"
    ANALYTICS = "analytics"
    OPERATIONS = "operations"
    FINANCE = "finance"
    COMMUNICATION = "communication"
    HR = "hr"
    SETTINGS = "settings"


@dataclass(frozen=True)
class BusinessModule:
    id: str
    title: str
    path: str
    business_types: frozenset[BusinessType]
    requirement: Requirement
    category: ModuleCategory

    def offered_to(self, business_type: BusinessType | str) -> bool:
        try:
            return BusinessType(business_type) in self.business_types
        except ValueError:
            return False


_EVERY = frozenset(BusinessType)
_R, _E, _S, _M, _W, _D, _T = (
    BusinessType.RETAILER,
    BusinessType.ECOMMERCE,
    BusinessType.SERVICE,
    BusinessType.MANUFACTURER,
    BusinessType.WHOLESALER,
    BusinessType.DISTRIBUTOR,
    BusinessType.TRADER,
)


def _module(
    module_id: str,
    title: str,
    path: str,
    requirement: Requirement,
    category: ModuleCategory,
    business_types: frozenset[BusinessType] = _EVERY,
) -> BusinessModule:
    return BusinessModule(
        id=module_id,
        title=title,
        path=path,
        business_types=frozenset(business_types),
        requirement=requirement,
        category=category,
    )


Cat = ModuleCategory

# Listed in display order.
MODULES: tuple[BusinessModule, ...] = (
    # ── Common ──────────────────────────────────────────────
    _module("main-dashboard", "Dashboard", "/dashboard", require_capability(C.VIEW_DASHBOARD), Cat.ANALYTICS),
    _module("business-profile", "Business Profile", "/dashboard/settings/profile",
            require_capability(C.BUSINESS_PROFILE_SETUP), Cat.SETTINGS),
    _module("add-sale-invoice", "Add Sale & Invoice", "/dashboard/add-sale",
            require_capability(C.VIEW_ADD_EDIT_ORDERS), Cat.SALES),
    _module("basic-inventory", "Inventory Management", "/dashboard/inventory",
            require_capability(C.VIEW_INVENTORY), Cat.INVENTORY),
    _module("analytics-reports", "Analytics & Reports", "/dashboard/analytics",
            require_capability(C.VIEW_BASIC_ANALYTICS), Cat.ANALYTICS),
    _module("ai-assistant", "AI Business Assistant", "/dashboard/ai-assistant",
            require_capability(C.AI_ASSISTANT_ACCESS), Cat.OPERATIONS),
    _module("task-manager", "Task & To-Do Manager", "/dashboard/tasks",
            require_capability(C.TASK_AND_TODO_MANAGER), Cat.OPERATIONS),
    _module("team-chat", "Team Chat", "/dashboard/team-chat",
            require_capability(C.INTERNAL_TEAM_CHAT), Cat.COMMUNICATION),
    _module("attendance-tracker", "Leave & Attendance", "/dashboard/attendance",
            require_capability(C.LEAVE_AND_ATTENDANCE), Cat.HR),
    _module("activity-logs", "Activity Logs", "/dashboard/activity-logs",
            require_capability(C.ACTIVITY_LOGS), Cat.OPERATIONS),
    _module("multi-branch", "Multi-Branch Management", "/dashboard/branches",
            require_capability(C.MULTI_BRANCH_SUPPORT), Cat.OPERATIONS),
    _module("backup-restore", "Backup & Restore", "/dashboard/backup",
            require_capability(C.AUTO_BACKUP_RESTORE), Cat.SETTINGS),
    _module("performance-dashboard", "Performance Dashboard", "/dashboard/performance",
            require_capability(C.PERFORMANCE_DASHBOARD), Cat.HR),
    _module("qr-scanner", "QR Code Scanner", "/dashboard/qr-scanner",
            require_capability(C.QR_CODE_SCANNER), Cat.OPERATIONS),
    _module("settings", "Settings", "/dashboard/settings",
            require_capability(C.SETTINGS_AREA), Cat.SETTINGS),
    _module("staff-management", "Staff Management", "/dashboard/staff",
            require_capability(C.MANAGE_TEAM), Cat.HR),
    _module("staff-attendance", "Staff Attendance", "/dashboard/staff/attendance", NO_REQUIREMENT, Cat.HR),
    _module("sales-commission", "Sales Commission", "/dashboard/staff/commission",
            require_capability(C.VIEW_COMMISSION), Cat.FINANCE),
    _module("inventory-batches", "Inventory Batches", "/dashboard/inventory-batches",
            require_capability(C.ADD_EDIT_DELETE_PRODUCTS), Cat.INVENTORY, frozenset({_R, _M, _W, _D})),
    _module("owner-analytics", "Owner Analytics", "/dashboard/owner-analytics", OWNER_ONLY, Cat.ANALYTICS),
    _module("vendor-management", "Vendor Management", "/dashboard/vendor-management",
            require_capability(C.ADD_EDIT_DELETE_PRODUCTS), Cat.OPERATIONS, frozenset({_M, _W, _D, _R, _T})),
    _module("branch-management", "Branch Management", "/dashboard/branch-management", OWNER_ONLY, Cat.SETTINGS),
    # ── Retailer ────────────────────────────────────────────
    _module("customer-database", "Customer Database", "/dashboard/retailer/customers",
            require_capability(C.MANAGE_CUSTOMERS), Cat.CUSTOMER, frozenset({_R})),
    _module("expense-tracking", "Expense Tracking", "/dashboard/retailer/expenses",
            require_capability(C.VIEW_FINANCIAL_DATA), Cat.FINANCE, frozenset({_R})),
    _module("gst-reports", "GST Reports", "/dashboard/retailer/gst-reports",
            require_capability(C.FINANCIAL_REPORTS), Cat.FINANCE, frozenset({_R})),
    # ── E-commerce ──────────────────────────────────────────
    _module("product-catalog-mgmt", "Product Catalog", "/dashboard/ecommerce/product-catalog",
            require_capability(C.ADD_EDIT_DELETE_PRODUCTS), Cat.INVENTORY, frozenset({_E})),
    _module("in-app-ordering", "Orders", "/dashboard/ecommerce/orders",
            require_capability(C.VIEW_ADD_EDIT_ORDERS), Cat.SALES, frozenset({_E})),
    _module("payment-tracking", "Payment Tracking", "/dashboard/ecommerce/payments",
            require_capability(C.VIEW_FINANCIAL_DATA), Cat.FINANCE, frozenset({_E})),
    # ── Service ─────────────────────────────────────────────
    _module("booking-scheduling", "Bookings & Scheduling", "/dashboard/service/bookings",
            require_capability(C.VIEW_ADD_EDIT_ORDERS), Cat.OPERATIONS, frozenset({_S})),
    _module("quotation-generator", "Quotation Generator", "/dashboard/service/quotations",
            require_capability(C.VIEW_ADD_EDIT_ORDERS), Cat.SALES, frozenset({_S})),
    # ── Manufacturer ────────────────────────────────────────
    _module("raw-material-inventory", "Raw Material Inventory", "/dashboard/manufacturer/raw-material-inventory",
            require_capability(C.RAW_MATERIAL_INVENTORY), Cat.INVENTORY, frozenset({_M})),
    _module("recipe", "Recipe Management", "/dashboard/manufacturer/recipe",
            require_capability(C.RECIPE_MANAGEMENT), Cat.OPERATIONS, frozenset({_M})),
    _module("production", "Production", "/dashboard/manufacturer/production",
            require_capability(C.PRODUCTION_WORKFLOW), Cat.OPERATIONS, frozenset({_M})),
    _module("cost-per-unit", "Cost per Unit", "/dashboard/manufacturer/cost-per-unit",
            all_of(C.PRODUCTION_LOGS, C.VIEW_FINANCIAL_DATA), Cat.FINANCE, frozenset({_M})),
    # ── Wholesaler ──────────────────────────────────────────
    _module("bulk-inventory-management", "Bulk Inventory", "/dashboard/wholesaler/bulk-inventory",
            require_capability(C.ADD_EDIT_DELETE_PRODUCTS), Cat.INVENTORY, frozenset({_W})),
    _module("party-ledger", "Party Ledger", "/dashboard/wholesaler/party-ledger",
            require_capability(C.FINANCIAL_REPORTS), Cat.FINANCE, frozenset({_W})),
    # ── Distributor ─────────────────────────────────────────
    _module("brand-product-management", "Brand Products", "/dashboard/distributor/brand-products",
            require_capability(C.ADD_EDIT_DELETE_PRODUCTS), Cat.INVENTORY, frozenset({_D})),
    _module("route-planning", "Route Planning", "/dashboard/distributor/route-planning",
            require_capability(C.ASSIGN_TASKS_OR_ROUTES), Cat.OPERATIONS, frozenset({_D})),
    # ── Trader ──────────────────────────────────────────────
    _module("buy-sell-tracking", "Buy-Sell Tracking", "/dashboard/trader/buy-sell-tracking",
            require_capability(C.VIEW_ADD_EDIT_ORDERS), Cat.INVENTORY, frozenset({_T})),
    _module("profit-loss-statements", "Profit & Loss", "/dashboard/trader/profit-loss",
            require_capability(C.FINANCIAL_REPORTS), Cat.FINANCE, frozenset({_T})),
)

_BY_ID: dict[str, BusinessModule] = {m.id: m for m in MODULES}
if len(_BY_ID) != len(MODULES):
    raise ConfigurationError("Duplicate module id in MODULES")


def get_module(module_id: str) -> Optional[BusinessModule]:
    return _BY_ID.get(module_id)


def modules_for_business(business_type: BusinessType | str) -> list[BusinessModule]:
    """Modules a business of this type offers, before any role check."""
    return [m for m in MODULES if m.offered_to(business_type)]


def available_modules(session: Optional["Session"]) -> list[BusinessModule]:
    """Modules ``session`` may open, in display order."""
    if session is None:
        return []
    return [m for m in modules_for_business(session.tenant.business_type) if allow(m.requirement, session)]


def has_module_access(module_id: str, session: Optional["Session"]) -> bool:
    """Whether ``session`` may open ``module_id``. Unknown modules are closed."""
    module = get_module(module_id)
    if module is None or session is None:
        return False
    return module.offered_to(session.tenant.business_type) and allow(module.requirement, session)


__all__ = [
    "BusinessModule",
    "MODULES",
    "ModuleCategory",
    "available_modules",
    "get_module",
    "has_module_access",
    "modules_for_business",
]
