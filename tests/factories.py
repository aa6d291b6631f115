from datetime import date
from decimal import Decimal
from typing import Optional
from schoolms.core.security import create_access_token, hash_password
from schoolms.models.auth import User
from schoolms.models.enums import FeeType, FeeFrequency
from schoolms.models.finance import FeeStructure
from schoolms.models.library import Book
from schoolms.models.people import Student


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


async def make_user(db, phone: str, full_name: str = "Portal User", password: str = "secret123") -> User:
    user = User(phone=phone, full_name=full_name, hashed_password=hash_password(password), is_super_admin=False)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_student(db, registration_number: str, class_name: str = "10", **fields) -> Student:
    fields.setdefault("full_name", f"Student {registration_number}")
    student = Student(registration_number=registration_number, class_name=class_name, **fields)
    db.add(student)
    await db.commit()
    await db.refresh(student)
    return student


async def make_structure(
    db,
    class_name: str = "10",
    amount: str = "1000",
    late_fee_percentage: Optional[str] = None,
    frequency: FeeFrequency = FeeFrequency.MONTHLY,
    due_day: Optional[int] = None,
) -> FeeStructure:
    structure = FeeStructure(
        class_name=class_name,
        fee_type=FeeType.TUITION,
        amount=Decimal(amount),
        frequency=frequency,
        due_day=due_day,
        late_fee_percentage=Decimal(late_fee_percentage) if late_fee_percentage else None,
        academic_year="2082",
        is_active=True,
    )
    db.add(structure)
    await db.commit()
    await db.refresh(structure)
    return structure


async def make_book(db, title: str = "Muna Madan", copies: int = 2) -> Book:
    book = Book(title=title, author="Laxmi Prasad Devkota", total_copies=copies, available_copies=copies, is_active=True)
    db.add(book)
    await db.commit()
    await db.refresh(book)
    return book


ADMIN_PHONE = "+9779800000001"
ADMIN_PASSWORD = "admin123"

JUNE_1 = date(2025, 6, 1)
