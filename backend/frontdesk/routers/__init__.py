# API Routers
from frontdesk.routers import (
    auth, rooms, reservations, guests, billing, transactions, reports, payroll, users, ai, realtime
)

__all__ = [
    'auth', 'rooms', 'reservations', 'guests', 'billing', 'transactions',
    'reports', 'payroll', 'users', 'ai', 'realtime'
]
