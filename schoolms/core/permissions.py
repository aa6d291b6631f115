PERM_STUDENTS_VIEW = "students:view"
PERM_STUDENTS_EDIT = "students:edit"
PERM_TEACHERS_VIEW = "teachers:view"
PERM_TEACHERS_EDIT = "teachers:edit"
PERM_PARENTS_MANAGE = "parents:manage"

PERM_ACADEMICS_VIEW = "academics:view"
PERM_ACADEMICS_MANAGE = "academics:manage"
PERM_MARKS_ENTER = "academics:marks:enter"
PERM_RESULTS_CALCULATE = "academics:results:calculate"

PERM_FEES_VIEW = "finance:fees:view"
PERM_FEES_MANAGE = "finance:fees:manage"
PERM_PAYMENTS_RECORD = "finance:payments:record"
PERM_EXPENSES_MANAGE = "finance:expenses:manage"

PERM_LIBRARY_VIEW = "library:view"
PERM_LIBRARY_MANAGE = "library:manage"
PERM_LIBRARY_CIRCULATE = "library:circulate"
PERM_LIBRARY_FINES = "library:fines"

PERM_ATTENDANCE_VIEW = "attendance:view"
PERM_ATTENDANCE_MARK = "attendance:mark"

PERM_HOMEWORK_VIEW = "homework:view"
PERM_HOMEWORK_MANAGE = "homework:manage"

PERM_CHAT_MANAGE = "chat:manage"
PERM_CALENDAR_MANAGE = "calendar:manage"
PERM_NOTICES_MANAGE = "notices:manage"
PERM_ADMISSIONS_MANAGE = "admissions:manage"

PERM_REPORTS_FINANCE_VIEW = "reports:finance:view"
PERM_REPORTS_ATTENDANCE_VIEW = "reports:attendance:view"
PERM_REPORTS_DASHBOARD_VIEW = "reports:dashboard:view"

PERM_ACTIVITY_VIEW = "activity:view"

PERM_SETTINGS_SYSTEM_EDIT = "settings:system:edit"
PERM_SETTINGS_SYSTEM_VIEW = "settings:system:view"

PERM_ROLES_MANAGE = "roles:manage"
PERM_USERS_MANAGE = "users:manage"

ALL_PERMISSIONS = [
    {"code": PERM_STUDENTS_VIEW, "description": "View students"},
    {"code": PERM_STUDENTS_EDIT, "description": "Create, edit and delete students"},
    {"code": PERM_TEACHERS_VIEW, "description": "View teachers"},
    {"code": PERM_TEACHERS_EDIT, "description": "Create, edit and delete teachers"},
    {"code": PERM_PARENTS_MANAGE, "description": "Manage parents and their linked students"},
    {"code": PERM_ACADEMICS_VIEW, "description": "View subjects, exams and results"},
    {"code": PERM_ACADEMICS_MANAGE, "description": "Manage subjects and exams, publish results"},
    {"code": PERM_MARKS_ENTER, "description": "Enter exam marks"},
    {"code": PERM_RESULTS_CALCULATE, "description": "Calculate exam results"},
    {"code": PERM_FEES_VIEW, "description": "View fee structures, invoices and payments"},
    {"code": PERM_FEES_MANAGE, "description": "Manage fee structures and invoices"},
    {"code": PERM_PAYMENTS_RECORD, "description": "Record fee payments"},
    {"code": PERM_EXPENSES_MANAGE, "description": "Manage school expenses"},
    {"code": PERM_LIBRARY_VIEW, "description": "View library catalogue and circulation"},
    {"code": PERM_LIBRARY_MANAGE, "description": "Manage books, memberships and library settings"},
    {"code": PERM_LIBRARY_CIRCULATE, "description": "Issue and return books"},
    {"code": PERM_LIBRARY_FINES, "description": "Collect and waive library fines"},
    {"code": PERM_ATTENDANCE_VIEW, "description": "View attendance records"},
    {"code": PERM_ATTENDANCE_MARK, "description": "Mark attendance"},
    {"code": PERM_HOMEWORK_VIEW, "description": "View homework and submissions"},
    {"code": PERM_HOMEWORK_MANAGE, "description": "Assign and grade homework"},
    {"code": PERM_CHAT_MANAGE, "description": "Manage visitor chat conversations"},
    {"code": PERM_CALENDAR_MANAGE, "description": "Manage academic calendar events"},
    {"code": PERM_NOTICES_MANAGE, "description": "Write, publish and pin notices"},
    {"code": PERM_ADMISSIONS_MANAGE, "description": "Review admission applications"},
    {"code": PERM_REPORTS_FINANCE_VIEW, "description": "View financial reports"},
    {"code": PERM_REPORTS_ATTENDANCE_VIEW, "description": "View attendance reports"},
    {"code": PERM_REPORTS_DASHBOARD_VIEW, "description": "View dashboard"},
    {"code": PERM_ACTIVITY_VIEW, "description": "View activity log"},
    {"code": PERM_SETTINGS_SYSTEM_EDIT, "description": "Edit system settings"},
    {"code": PERM_SETTINGS_SYSTEM_VIEW, "description": "View system settings"},
    {"code": PERM_ROLES_MANAGE, "description": "Manage roles and permissions"},
    {"code": PERM_USERS_MANAGE, "description": "Manage users"},
]

DEFAULT_ROLES = {
    "Super Admin": {
        "description": "Full system access",
        "permissions": [],
    },
    "Admin": {
        "description": "School administration: students, teachers, exams and reports",
        "permissions": [
            PERM_STUDENTS_VIEW,
            PERM_STUDENTS_EDIT,
            PERM_TEACHERS_VIEW,
            PERM_TEACHERS_EDIT,
            PERM_PARENTS_MANAGE,
            PERM_ACADEMICS_VIEW,
            PERM_ACADEMICS_MANAGE,
            PERM_MARKS_ENTER,
            PERM_RESULTS_CALCULATE,
            PERM_FEES_VIEW,
            PERM_ATTENDANCE_VIEW,
            PERM_ATTENDANCE_MARK,
            PERM_HOMEWORK_VIEW,
            PERM_CHAT_MANAGE,
            PERM_CALENDAR_MANAGE,
            PERM_NOTICES_MANAGE,
            PERM_ADMISSIONS_MANAGE,
            PERM_REPORTS_ATTENDANCE_VIEW,
            PERM_REPORTS_DASHBOARD_VIEW,
            PERM_ACTIVITY_VIEW,
            PERM_SETTINGS_SYSTEM_VIEW,
        ],
    },
    "Accountant": {
        "description": "Fee collection, invoices, expenses and financial reports",
        "permissions": [
            PERM_STUDENTS_VIEW,
            PERM_FEES_VIEW,
            PERM_FEES_MANAGE,
            PERM_PAYMENTS_RECORD,
            PERM_EXPENSES_MANAGE,
            PERM_LIBRARY_FINES,
            PERM_REPORTS_FINANCE_VIEW,
            PERM_REPORTS_DASHBOARD_VIEW,
        ],
    },
    "Librarian": {
        "description": "Library catalogue, circulation and fines",
        "permissions": [
            PERM_STUDENTS_VIEW,
            PERM_LIBRARY_VIEW,
            PERM_LIBRARY_MANAGE,
            PERM_LIBRARY_CIRCULATE,
            PERM_LIBRARY_FINES,
        ],
    },
    "Teacher": {
        "description": "Attendance, marks entry and homework",
        "permissions": [
            PERM_STUDENTS_VIEW,
            PERM_ACADEMICS_VIEW,
            PERM_MARKS_ENTER,
            PERM_ATTENDANCE_VIEW,
            PERM_ATTENDANCE_MARK,
            PERM_HOMEWORK_VIEW,
            PERM_HOMEWORK_MANAGE,
            PERM_REPORTS_ATTENDANCE_VIEW,
        ],
    },
    "Student": {
        "description": "Student self-service portal",
        "permissions": [],
    },
    "Parent": {
        "description": "Parent self-service portal",
        "permissions": [],
    },
}


def permission_module(code: str) -> str:
    """Feature area a permission belongs to, e.g. "finance" for "finance:fees:view"."""
    return code.split(":", 1)[0]
