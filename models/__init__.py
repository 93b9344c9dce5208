# models/__init__.py
# Model registry

from .admin import Admin
from .category import Category
from .participant import Participant
from .audition import Audition
from .announcement import Announcement
from .notification import Notification
from .final_performance import FinalPerformance
from .vote import Vote

# Largest primary key the database can store
MAX_ROW_ID = 2 ** 63 - 1


def in_id_range(value):
    return isinstance(value, int) and 0 < value <= MAX_ROW_ID
