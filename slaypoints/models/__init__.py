from slaypoints.models.account import Account
from slaypoints.models.audit_log import AuditLog
from slaypoints.models.balance_record import BalanceRecord

__all__ = [
    "Account",
    "AuditLog",
    "BalanceRecord",
]
