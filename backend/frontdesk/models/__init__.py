# Business Models
from frontdesk.models.ontology import (
    Room, Guest, Reservation, Transaction, User, Staff, SalaryPayment, FiscalDay
)

__all__ = [
    'Room', 'Guest', 'Reservation', 'Transaction', 'User',
    'Staff', 'SalaryPayment', 'FiscalDay'
]
