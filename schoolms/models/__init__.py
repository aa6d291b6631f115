from schoolms.models.auth import User, Role, Permission
from schoolms.models.people import Student, Teacher, TeacherAssignment, Parent
from schoolms.models.academics import Subject, Exam, ExamMark, StudentResult
from schoolms.models.finance import FeeStructure, StudentFee, FeePayment, PaymentVerificationRequest, SchoolExpense
from schoolms.models.library import Book, BookIssue, LibraryFine, LibrarySettings, LibraryMembership
from schoolms.models.attendance import Attendance
from schoolms.models.homework import Homework, HomeworkSubmission
from schoolms.models.messaging import Message, ChatConversation, ChatMessage
from schoolms.models.settings import SystemSettings, CalendarEvent, ActivityLog
from schoolms.models.notices import Notice
from schoolms.models.admissions import Admission

__all__ = [
    "User",
    "Role",
    "Permission",
    "Student",
    "Teacher",
    "TeacherAssignment",
    "Parent",
    "Subject",
    "Exam",
    "ExamMark",
    "StudentResult",
    "FeeStructure",
    "StudentFee",
    "FeePayment",
    "PaymentVerificationRequest",
    "SchoolExpense",
    "Book",
    "BookIssue",
    "LibraryFine",
    "LibrarySettings",
    "LibraryMembership",
    "Attendance",
    "Homework",
    "HomeworkSubmission",
    "Message",
    "ChatConversation",
    "ChatMessage",
    "SystemSettings",
    "CalendarEvent",
    "ActivityLog",
    "Notice",
    "Admission",
]
