"""Collection and field name mapping for the hosted tables.

Snapshot records use camelCase field names and collection names such as
``emptyToners``; the hosted PostgreSQL schema uses snake_case tables and
columns.  Both hosted adapters convert through the helpers here so the
snapshot never sees database naming.

Fields that have no explicit mapping pass through unchanged.
"""

import re
from typing import Any

SETTINGS_TABLE = "app_settings"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

TABLE_NAMES: dict[str, str] = {
    "printers": "printers",
    "inventory": "toner_inventory",
    "orders": "toner_orders",
    "changes": "toner_changes",
    "users": "users",
    "operators": "operators",
    "tonerModels": "toner_models",
    "loans": "toner_loans",
    "emptyToners": "empty_toners",
    "fuserModels": "fuser_models",
    "printerFusers": "printer_fusers",
    "tickets": "tickets",
    "ticketTemplates": "ticket_templates",
}

_TIMESTAMPS = {"createdAt": "created_at", "updatedAt": "updated_at"}

FIELD_NAMES: dict[str, dict[str, str]] = {
    "toner_inventory": {
        "printerId": "printer_id",
        "tonerModel": "toner_model",
        "onLoan": "on_loan",
        "loanMessage": "loan_message",
        **_TIMESTAMPS,
    },
    "toner_orders": {
        "trackingNumber": "tracking_number",
        "printerId": "printer_id",
        "colorTonerId": "color_toner_id",
        "tonerModel": "toner_model",
        "orderDate": "order_date",
        "arrivalDate": "arrival_date",
        "emailSent": "email_sent",
        **_TIMESTAMPS,
    },
    "toner_changes": {
        "changeDate": "change_date",
        "printerId": "printer_id",
        "printerSerial": "printer_serial",
        "tonerModel": "toner_model",
        "motorCycle": "motor_cycle",
        "printerIp": "printer_ip",
        "isBackup": "is_backup",
        "motorCyclePending": "motor_cycle_pending",
        "createdAt": "created_at",
    },
    "toner_loans": {
        "inventoryId": "inventory_id",
        "lenderPrinterId": "lender_printer_id",
        "borrowerPrinterId": "borrower_printer_id",
        "lenderLocation": "lender_location",
        "borrowerLocation": "borrower_location",
        "tonerModel": "toner_model",
        "loanDate": "loan_date",
        "returnDate": "return_date",
        "loanMessage": "loan_message",
        "returnedBy": "returned_by",
        "isReturned": "is_returned",
        **_TIMESTAMPS,
    },
    "empty_toners": {
        "tonerModel": "toner_model",
        "printerModel": "printer_model",
        "printerLocation": "printer_location",
        "changeDate": "change_date",
        "isBackup": "is_backup",
        "motorCycleCaptured": "motor_cycle_captured",
        **_TIMESTAMPS,
    },
    "fuser_models": dict(_TIMESTAMPS),
    "printer_fusers": {
        "printerId": "printer_id",
        "fuserModel": "fuser_model",
        "pagesUsed": "pages_used",
        "installationDate": "installation_date",
        "lastUpdate": "last_update",
        **_TIMESTAMPS,
    },
    "printers": {
        "hostnameServer": "hostname_server",
        "ipServer": "ip_server",
        "tonerCapacity": "toner_capacity",
        "currentTonerLevel": "current_toner_level",
        "dailyUsage": "daily_usage",
        "motorCycle": "motor_cycle",
        "tonerModel": "toner_model",
        "colorToners": "color_toners",
        "hasBackupToner": "has_backup_toner",
        "motorCyclePending": "motor_cycle_pending",
        **_TIMESTAMPS,
    },
    "users": {"usuarioWindows": "usuario_windows", **_TIMESTAMPS},
    "operators": dict(_TIMESTAMPS),
    "toner_models": {"tonerModel": "toner_model", **_TIMESTAMPS},
    "tickets": {
        "userName": "user_name",
        "printerId": "printer_id",
        "assistanceTitle": "assistance_title",
        "assistanceDetail": "assistance_detail",
        "isServiceRequest": "is_service_request",
        "isIncident": "is_incident",
        **_TIMESTAMPS,
    },
    "ticket_templates": {"usageCount": "usage_count", **_TIMESTAMPS},
}


def table_for(collection: str) -> str:
    """Return the hosted table name for a snapshot collection."""
    return TABLE_NAMES.get(collection, collection)


def to_row(collection: str, record: dict[str, Any]) -> dict[str, Any]:
    """Convert a snapshot record to a table row (camelCase -> snake_case)."""
    mapping = FIELD_NAMES.get(table_for(collection), {})
    return {mapping.get(k, k): v for k, v in record.items()}


def to_record(collection: str, row: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert a table row back to a snapshot record."""
    if row is None:
        return None
    mapping = FIELD_NAMES.get(table_for(collection), {})
    reverse = {snake: camel for camel, snake in mapping.items()}
    return {reverse.get(k, k): v for k, v in row.items()}


def check_identifier(name: str) -> str:
    """Reject table or column names that are not plain SQL identifiers."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid identifier: {name!r}")
    return name
