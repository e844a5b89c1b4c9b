"""Capability constants, business types and the role vocabulary.

Provides:
- ``Capabilities`` — every capability key the catalog declares.
- ``BusinessType`` — the fixed set of tenant business types.
- ``Role`` — the fixed role vocabulary (not every role is legal for every type).
"""

from __future__ import annotations

from enum import Enum


class BusinessType(str, Enum):
    """Kind of business a tenant runs. Scopes the legal roles."""

    MANUFACTURER = "manufacturer"
    RETAILER = "retailer"
    WHOLESALER = "wholesaler"
    DISTRIBUTOR = "distributor"
    TRADER = "trader"
    SERVICE = "service"
    ECOMMERCE = "ecommerce"


class Role(str, Enum):
    """Role vocabulary shared by all tenants."""

    OWNER = "owner"
    CO_FOUNDER = "co_founder"
    MANAGER = "manager"
    STAFF = "staff"
    ACCOUNTANT = "accountant"
    SALES_EXECUTIVE = "sales_executive"
    INVENTORY_MANAGER = "inventory_manager"
    DELIVERY_STAFF = "delivery_staff"
    HR = "hr"
    PRODUCTION = "production"
    STORE_STAFF = "store_staff"
    SALES_STAFF = "sales_staff"


class Capabilities:
    """Closed catalog of capability keys.

    Keys are opaque strings. Consumers reference the constants here and
    never invent keys of their own; ``Requirement`` construction rejects
    anything not in :attr:`ALL`.
    """

    # ── Baseline (every role) ───────────────────────────
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_BASIC_ANALYTICS = "view_basic_analytics"
    VIEW_INVENTORY = "view_inventory"
    VIEW_ORDERS = "view_orders"

    # ── Module visibility ───────────────────────────────
    VIEW_ALL_MODULES = "view_all_modules"
    VIEW_MOST_MODULES = "view_most_modules"
    VIEW_DEPARTMENT_MODULES = "view_department_modules"
    VIEW_ASSIGNED_MODULES = "view_assigned_modules"
    VIEW_FINANCIAL_MODULES = "view_financial_modules"
    VIEW_SALES_MODULES = "view_sales_modules"
    VIEW_INVENTORY_MODULES = "view_inventory_modules"
    VIEW_DELIVERY_MODULES = "view_delivery_modules"
    VIEW_HR_MODULES = "view_hr_modules"
    VIEW_PRODUCTION_MODULES = "view_production_modules"
    VIEW_STORE_MODULES = "view_store_modules"

    # ── Record scopes ───────────────────────────────────
    CREATE_ALL = "create_all"
    EDIT_ALL = "edit_all"
    DELETE_ALL = "delete_all"
    CREATE_MOST = "create_most"
    EDIT_MOST = "edit_most"
    CREATE_DEPARTMENT = "create_department"
    EDIT_DEPARTMENT = "edit_department"
    CREATE_BASIC = "create_basic"
    EDIT_ASSIGNED = "edit_assigned"
    VIEW_OWN_DATA = "view_own_data"
    CREATE_FINANCIAL = "create_financial"
    EDIT_FINANCIAL = "edit_financial"
    CREATE_SALES = "create_sales"
    EDIT_SALES = "edit_sales"

    # ── Analytics & reports ─────────────────────────────
    VIEW_ADVANCED_ANALYTICS = "view_advanced_analytics"
    VIEW_TEAM_ANALYTICS = "view_team_analytics"
    VIEW_FINANCIAL_ANALYTICS = "view_financial_analytics"
    VIEW_SALES_ANALYTICS = "view_sales_analytics"
    VIEW_INVENTORY_ANALYTICS = "view_inventory_analytics"
    VIEW_STAFF_ANALYTICS = "view_staff_analytics"
    VIEW_PRODUCTION_ANALYTICS = "view_production_analytics"
    VIEW_FINANCIAL_DATA = "view_financial_data"
    EXPORT_REPORTS = "export_reports"
    EXPORT_TEAM_REPORTS = "export_team_reports"
    EXPORT_FINANCIAL_REPORTS = "export_financial_reports"
    EXPORT_SALES_REPORTS = "export_sales_reports"
    EXPORT_INVENTORY_REPORTS = "export_inventory_reports"
    FINANCIAL_REPORTS = "financialReports"
    PERFORMANCE_DASHBOARD = "performanceDashboard"

    # ── Administration ──────────────────────────────────
    MANAGE_USERS = "manage_users"
    MANAGE_TEAM = "manage_team"
    MANAGE_STAFF = "manage_staff"
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_BUSINESS_SETTINGS = "manage_business_settings"
    BUSINESS_PROFILE_SETUP = "businessProfileSetup"
    SETTINGS_AREA = "settingsArea"
    ACTIVITY_LOGS = "activityLogs"
    MULTI_BRANCH_SUPPORT = "multiBranchSupport"
    AUTO_BACKUP_RESTORE = "autoBackupRestore"
    DATA_IMPORT_EXPORT = "dataImportExport"

    # ── Operations ──────────────────────────────────────
    ADD_EDIT_DELETE_PRODUCTS = "addEditDeleteProducts"
    VIEW_ADD_EDIT_ORDERS = "viewAddEditOrders"
    MANAGE_CUSTOMERS = "manage_customers"
    MANAGE_STOCK = "manage_stock"
    BASIC_INVENTORY_ACCESS = "basic_inventory_access"
    UPDATE_DELIVERY_STATUS = "update_delivery_status"
    ASSIGN_TASKS_OR_ROUTES = "assignTasksOrRoutes"
    MANAGE_ASSETS_LIABILITIES = "manageAssetsLiabilities"
    ASSET_TRACKER = "assetTracker"
    QR_CODE_SCANNER = "qrCodeScanner"
    VIEW_COMMISSION = "view_commission"

    # ── People ──────────────────────────────────────────
    HR_AND_STAFF_ATTENDANCE = "hrAndStaffAttendance"
    LEAVE_AND_ATTENDANCE = "leaveAndAttendance"
    TASK_AND_TODO_MANAGER = "taskAndTodoManager"
    INTERNAL_TEAM_CHAT = "internalTeamChat"

    # ── Assistant ───────────────────────────────────────
    VIEW_AI_ASSISTANT = "view_ai_assistant"
    AI_ASSISTANT_ACCESS = "aiAssistantAccess"

    # ── Manufacturing ───────────────────────────────────
    MANAGE_PRODUCTION = "manage_production"
    RAW_MATERIAL_INVENTORY = "rawMaterialInventory"
    RECIPE_MANAGEMENT = "recipeManagement"
    PRODUCTION_WORKFLOW = "productionWorkflow"
    PRODUCTION_LOGS = "productionLogs"

    ALL: frozenset[str] = frozenset()  # filled below

    @classmethod
    def is_known(cls, capability: str) -> bool:
        """Whether ``capability`` is declared in the catalog."""
        return capability in cls.ALL


Capabilities.ALL = frozenset(
    value
    for attr, value in vars(Capabilities).items()
    if attr.isupper() and attr != "ALL" and isinstance(value, str)
)


__all__ = [
    "BusinessType",
    "Capabilities",
    "Role",
]
