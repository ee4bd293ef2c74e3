"""Write-side and composite services."""

from hostel_ledger.services.base import BaseService
from hostel_ledger.services.dashboard_service import DashboardService
from hostel_ledger.services.notification_service import (
    LoggingSmsGateway,
    ReceiptNotifier,
    SmsGateway,
)
from hostel_ledger.services.period_transition_service import PeriodTransitionService
from hostel_ledger.services.record_service import RecordService

__all__ = [
    "BaseService",
    "DashboardService",
    "LoggingSmsGateway",
    "PeriodTransitionService",
    "ReceiptNotifier",
    "RecordService",
    "SmsGateway",
]
