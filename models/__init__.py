from .db import db
from .audit_log import AuditLog
from .booking import Booking, PartySnapshot
from .blocked_slot import BlockedSlot
from .subscription import Subscription
from .query_counter import QueryCounter
