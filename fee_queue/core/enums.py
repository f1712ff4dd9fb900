from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"
    ACCOUNTANT = "accountant"


class QueueStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REMOVED = "removed"


# Entries still waiting at a counter
ACTIVE_STATUSES = (QueueStatus.PENDING.value, QueueStatus.PROCESSING.value)


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"
    BANK = "BANK"
