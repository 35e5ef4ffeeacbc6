from .auth import User, SessionToken, USER_ROLES
from .catalog import BreadType
from .production import Batch, SHIFTS, BATCH_STATUSES
from .sales import SalesLog, RemainingStock
from .activity import Activity, ShiftFeedback, ACTIVITY_TYPES
from .reports import ShiftReport

__all__ = [
    'User', 'SessionToken', 'USER_ROLES',
    'BreadType',
    'Batch', 'SHIFTS', 'BATCH_STATUSES',
    'SalesLog', 'RemainingStock',
    'Activity', 'ShiftFeedback', 'ACTIVITY_TYPES',
    'ShiftReport',
]
