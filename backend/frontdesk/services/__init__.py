# Business Services
from frontdesk.services.room_service import RoomService
from frontdesk.services.reservation_service import ReservationService
from frontdesk.services.guest_service import GuestService
from frontdesk.services.billing_service import BillingService
from frontdesk.services.transaction_service import TransactionService
from frontdesk.services.report_service import ReportService
from frontdesk.services.payroll_service import PayrollService
from frontdesk.services.user_service import UserService
from frontdesk.services.ai_service import AIService

__all__ = [
    'RoomService', 'ReservationService', 'GuestService',
    'BillingService', 'TransactionService', 'ReportService',
    'PayrollService', 'UserService', 'AIService'
]
