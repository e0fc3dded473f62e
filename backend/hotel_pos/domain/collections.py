"""Catalogue of the collections used by the hotel/restaurant system.

The store itself accepts any valid collection name; this list drives the
diagnostics endpoints, snapshots and status counts.
"""

DISHES = "dishes"
ORDERS = "orders"
EXPENSES = "expenses"
INVENTORY = "inventory"
KTV_ROOMS = "ktv_rooms"
SIGN_BILL_ACCOUNTS = "sign_bill_accounts"
HOTEL_ROOMS = "hotel_rooms"
PAYMENT_METHODS = "payment_methods"
SYSTEM_SETTINGS = "system_settings"
PARTNER_ACCOUNTS = "partner_accounts"
AUDIT_LOG = "audit_log"

KNOWN_COLLECTIONS: tuple[str, ...] = (
    DISHES,
    ORDERS,
    EXPENSES,
    INVENTORY,
    KTV_ROOMS,
    SIGN_BILL_ACCOUNTS,
    HOTEL_ROOMS,
    PAYMENT_METHODS,
    SYSTEM_SETTINGS,
    PARTNER_ACCOUNTS,
    AUDIT_LOG,
)

DEFAULT_SETTINGS_ID = "default"
UNCATEGORIZED_BUCKET = "未分类"
