from enum import Enum


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class StudentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"


class TeacherStatus(str, Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    INACTIVE = "inactive"


class ExamType(str, Enum):
    TERMINAL = "terminal"
    UNIT = "unit"
    MONTHLY = "monthly"
    FINAL = "final"
    PRE_BOARD = "pre_board"


class ResultStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class FeeType(str, Enum):
    ADMISSION = "admission"
    TUITION = "tuition"
    EXAM = "exam"
    LIBRARY = "library"
    SPORTS = "sports"
    COMPUTER = "computer"
    TRANSPORT = "transport"
    UNIFORM = "uniform"
    OTHER = "other"


class FeeFrequency(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    ESEWA = "esewa"
    KHALTI = "khalti"
    IMEPAY = "imepay"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class BookIssueStatus(str, Enum):
    ISSUED = "issued"
    RETURNED = "returned"
    LOST = "lost"


class FineStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    WAIVED = "waived"


class FineReason(str, Enum):
    OVERDUE = "overdue"
    LOST = "lost"


class MemberType(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class SubmissionStatus(str, Enum):
    SUBMITTED = "submitted"
    GRADED = "graded"


class ConversationStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class ChatSender(str, Enum):
    VISITOR = "visitor"
    STAFF = "staff"


class CalendarEventType(str, Enum):
    EXAM = "exam"
    HOLIDAY = "holiday"
    EVENT = "event"
    MEETING = "meeting"


class AdmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
