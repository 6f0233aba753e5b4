# renobudget/db/enums.py
import enum

# Item related enums
class ItemStatus(enum.Enum):
    Planning = "Planning"
    Pending = "Pending"
    Ordered = "Ordered"
    Completed = "Completed"   # 只有进入 Completed 才影响实际花费


# Room related enums
class RoomStatus(enum.Enum):
    NotStarted = "Not Started"
    InProgress = "In Progress"
    Completed = "Completed"


# User related enums
class UserRole(enum.Enum):
    admin = "admin"
    user = "user"


# Allocation editing
class AllocationField(enum.Enum):
    percentage = "percentage"
    amount = "amount"


GENERAL_ROOM_SLUG = "_general"
GENERAL_ROOM_NAME = "General / Shared Expenses"

DEFAULT_CATEGORY = "Other"
PRODUCTS_CATEGORY = "Products"
SEED_CATEGORIES = [
    "Services",
    "Labor",
    "Materials",
    "Products",
    "Transport",
    "Permits",
    "Professional Fees",
    "Other",
]

# slug -> display name
DEFAULT_ROOMS = [
    ("cocina", "Cocina"),
    ("sala", "Sala"),
    ("cuarto1", "Cuarto 1"),
    ("cuarto2", "Cuarto 2"),
    ("cuarto3", "Cuarto 3"),
    ("bano1", "Baño 1"),
    ("bano2", "Baño 2"),
    ("bano_visita", "Baño de Visita"),
    ("balcon", "Balcón"),
]


# Timeline related enums
class PhaseStatus(enum.Enum):
    NotStarted = "Not Started"
    InProgress = "In Progress"
    Completed = "Completed"
    Blocked = "Blocked"   # 不参与 current_phase 的选择


class LearningCategory(enum.Enum):
    tip = "tip"
    issue = "issue"
    decision = "decision"
    note = "note"


class ReferenceType(enum.Enum):
    image = "image"
    link = "link"
    document = "document"
