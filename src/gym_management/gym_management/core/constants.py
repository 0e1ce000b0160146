"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_CLASS_PRICE = Decimal("200000")
DEFAULT_WALKIN_PASS_PRICE = Decimal("50000")
DEFAULT_FIXED_COURSE_MONTHS = 3
DEFAULT_HISTORY_LIMIT = 50

RENEWAL_GRACE_DAYS = 30
BOOKING_CANCEL_MIN_HOURS = 2

FACE_DESCRIPTOR_SIZE = 128
FACE_MATCH_THRESHOLD = 0.6
# Stricter bar when refusing to enrol a face already registered to someone else.
FACE_DUPLICATE_THRESHOLD = 0.8

SALARY_MIN_YEAR = 2020
SALARY_MAX_MONTHS_AHEAD = 2

# Weekday labels stored in gym_classes.weekdays, indexed like date.weekday().
WEEKDAY_LABELS = ("Thứ 2", "Thứ 3", "Thứ 4", "Thứ 5", "Thứ 6", "Thứ 7", "Chủ nhật")

PERSONAL_TRAINING_MAX_CAPACITY = 2
PERSONAL_TRAINING_KEYWORDS = ("personal", "pt", "riêng")
