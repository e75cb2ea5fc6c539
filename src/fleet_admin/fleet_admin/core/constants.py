"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import DeletionPolicy

DEFAULT_SESSION_DAYS = 7
MIN_PASSWORD_LENGTH = 8
DEFAULT_ADMIN_PASSWORD = "12345678"

IQAMA_ID_PATTERN = r"^\d{10}$"
PHONE_PATTERN = r"^\+966\d{9}$"

VEHICLE_AMOUNT_REMARKS = "Vehicle amount"
OPENING_PAYMENT_REMARKS = "Opening payment"

# Per-entity removal policy, injected into the repositories by the container.
DELETION_POLICIES = {
    "employee": DeletionPolicy.SOFT,
    "payment": DeletionPolicy.SOFT,
    "installment": DeletionPolicy.SOFT,
    "vehicle": DeletionPolicy.HARD,
    "bill": DeletionPolicy.HARD,
    "admin": DeletionPolicy.HARD,
}

# DECIMAL(12, 2) upper bound for every money column.
MAX_AMOUNT = 9999999999.99

# VARCHAR sizes from database/schema.sql
MAX_NAME_LENGTH = 150
MAX_BILL_NAME_LENGTH = 200
MAX_VEHICLE_NUMBER_LENGTH = 50
MAX_SHORT_TEXT_LENGTH = 100
MAX_REMARKS_LENGTH = 500
MAX_USERNAME_LENGTH = 100

REMAINING_DUES_MESSAGE = "Installment amount cannot exceed remaining dues"
TOTAL_BELOW_PAID_MESSAGE = "Total amount cannot be less than the amount already paid"
