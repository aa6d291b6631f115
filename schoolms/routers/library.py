from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from schoolms.core.permissions import (
    PERM_LIBRARY_VIEW,
    PERM_LIBRARY_MANAGE,
    PERM_LIBRARY_CIRCULATE,
    PERM_LIBRARY_FINES,
)
from schoolms.models.library import Book, BookIssue, LibraryFine, LibraryMembership
from schoolms.models.people import Student
from schoolms.models.enums import BookIssueStatus, FineStatus, MemberType, MembershipStatus
from schoolms.schemas.library import (
    BookRead,
    BookCreate,
    BookUpdate,
    BookIssueRead,
    BookIssueDetail,
    BookIssueCreate,
    LibraryFineRead,
    ReturnResult,
    FinePayment,
    FineWaive,
    LibrarySettingsRead,
    LibrarySettingsUpdate,
    MembershipRead,
    MembershipCreate,
    MembershipBlock,
    LibraryStats,
)
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity
from schoolms.services.fees import to_money
from schoolms.services.library import (
    get_library_settings,
    issue_book,
    return_book,
    mark_book_lost,
    pay_fine,
    waive_fine,
    create_membership,
    overdue_days,
)
from schoolms.services.reports import library_stats
from schoolms.utils.school_time import school_today

router = APIRouter(prefix="/library", tags=["Library"])


# --- Books ---

@router.get("/books", response_model=DataResponse[list[BookRead]], dependencies=[Depends(require_permission(PERM_LIBRARY_VIEW))])
async def get_books(
    db: DbSession,
    search: Optional[str] = None,
    category: Optional[str] = None,
    available_only: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(Book.title.ilike(pattern), Book.author.ilike(pattern), Book.isbn.ilike(pattern)))
    if category:
        conditions.append(Book.category == category)
    if available_only:
        conditions.append(Book.available_copies > 0)
        conditions.append(Book.is_active.is_(True))

    result = await db.execute(
        select(Book).where(*conditions).order_by(Book.title).offset((page - 1) * page_size).limit(page_size)
    )
    books = result.scalars().all()

    count_result = await db.execute(select(func.count(Book.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[BookRead.model_validate(b) for b in books],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("/books", response_model=DataResponse[BookRead], dependencies=[Depends(require_permission(PERM_LIBRARY_MANAGE))])
async def create_book(data: BookCreate, user: CurrentUser, db: DbSession):
    if data.isbn:
        existing = await db.execute(select(Book.id).where(Book.isbn == data.isbn))
        if existing.scalar_one_or_none():
            raise HTTPException(status_code=400, detail=f"A book with ISBN '{data.isbn}' already exists")

    book = Book(**data.model_dump(), available_copies=data.total_copies, is_active=True)
    db.add(book)
    await db.flush()
    record_activity(db, user.id, "create", "book", book.id, {"title": book.title})
    await db.commit()
    await db.refresh(book)
    return DataResponse(data=BookRead.model_validate(book))


@router.get("/books/{book_id}", response_model=DataResponse[BookRead], dependencies=[Depends(require_permission(PERM_LIBRARY_VIEW))])
async def get_book(book_id: int, db: DbSession):
    result = await db.execute(select(Book).where(Book.id == book_id))
    book = result.scalar_one_or_none()
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return DataResponse(data=BookRead.model_validate(book))


@router.patch("/books/{book_id}", response_model=DataResponse[BookRead], dependencies=[Depends(require_permission(PERM_LIBRARY_MANAGE))])
async def update_book(book_id: int, data: BookUpdate, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Book).where(Book.id == book_id))
    book = result.scalar_one_or_none()
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")

    changes = data.model_dump(exclude_unset=True)
    new_total = changes.pop("total_copies", None)
    if new_total is not None:
        # Copies currently on loan stay on loan
        on_loan = book.total_copies - book.available_copies
        if new_total < on_loan:
            raise HTTPException(
                status_code=400,
                detail=f"Total copies cannot be less than the {on_loan} cop(ies) currently issued",
            )
        book.total_copies = new_total
        book.available_copies = new_total - on_loan

    for field, value in changes.items():
        setattr(book, field, value)

    record_activity(db, user.id, "update", "book", book.id, {"fields": sorted(data.model_dump(exclude_unset=True))})
    await db.commit()
    await db.refresh(book)
    return DataResponse(data=BookRead.model_validate(book))


@router.delete("/books/{book_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_LIBRARY_MANAGE))])
async def delete_book(book_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(Book).where(Book.id == book_id))
    book = result.scalar_one_or_none()
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")

    await db.delete(book)
    record_activity(db, user.id, "delete", "book", book_id)
    await db.commit()
    return DataResponse(data={"message": "Book deleted successfully"})


# --- Settings ---

@router.get("/settings", response_model=DataResponse[LibrarySettingsRead], dependencies=[Depends(require_permission(PERM_LIBRARY_VIEW))])
async def get_settings(db: DbSession):
    return DataResponse(data=LibrarySettingsRead.model_validate(await get_library_settings(db)))


@router.patch("/settings", response_model=DataResponse[LibrarySettingsRead], dependencies=[Depends(require_permission(PERM_LIBRARY_MANAGE))])
async def update_settings(data: LibrarySettingsUpdate, user: CurrentUser, db: DbSession):
    library_settings = await get_library_settings(db)

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if field in ("fine_per_day", "lost_book_fine_multiplier"):
            value = to_money(value)
        setattr(library_settings, field, value)

    record_activity(db, user.id, "update", "library_settings", library_settings.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(library_settings)
    return DataResponse(data=LibrarySettingsRead.model_validate(library_settings))


# --- Memberships ---

@router.get("/memberships", response_model=DataResponse[list[MembershipRead]], dependencies=[Depends(require_permission(PERM_LIBRARY_VIEW))])
async def get_memberships(
    db: DbSession,
    member_type: Optional[MemberType] = None,
    status: Optional[MembershipStatus] = None,
    blocked: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if member_type:
        conditions.append(LibraryMembership.member_type == member_type)
    if status:
        conditions.append(LibraryMembership.status == status)
    if blocked is not None:
        conditions.append(LibraryMembership.is_blocked.is_(blocked))

    result = await db.execute(
        select(LibraryMembership)
        .where(*conditions)
        .order_by(LibraryMembership.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    memberships = result.scalars().all()

    count_result = await db.execute(select(func.count(LibraryMembership.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[MembershipRead.model_validate(m) for m in memberships],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("/memberships", response_model=DataResponse[MembershipRead], dependencies=[Depends(require_permission(PERM_LIBRARY_MANAGE))])
async def create_library_membership(data: MembershipCreate, user: CurrentUser, db: DbSession):
    try:
        membership = await create_membership(db, data, user.id)
        return DataResponse(data=MembershipRead.model_validate(membership))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _get_membership_or_404(db: DbSession, membership_id: int) -> LibraryMembership:
    result = await db.execute(select(LibraryMembership).where(LibraryMembership.id == membership_id))
    membership = result.scalar_one_or_none()
    if not membership:
        raise HTTPException(status_code=404, detail="Membership not found")
    return membership


@router.post("/memberships/{membership_id}/block", response_model=DataResponse[MembershipRead], dependencies=[Depends(require_permission(PERM_LIBRARY_MANAGE))])
async def block_membership(membership_id: int, data: MembershipBlock, user: CurrentUser, db: DbSession):
    membership = await _get_membership_or_404(db, membership_id)
    membership.is_blocked = True
    membership.block_reason = data.reason
    record_activity(db, user.id, "block", "library_membership", membership.id, {"reason": data.reason})
    await db.commit()
    await db.refresh(membership)
    return DataResponse(data=MembershipRead.model_validate(membership))


@router.post("/memberships/{membership_id}/unblock", response_model=DataResponse[MembershipRead], dependencies=[Depends(require_permission(PERM_LIBRARY_MANAGE))])
async def unblock_membership(membership_id: int, user: CurrentUser, db: DbSession):
    membership = await _get_membership_or_404(db, membership_id)
    membership.is_blocked = False
    membership.block_reason = None
    record_activity(db, user.id, "unblock", "library_membership", membership.id)
    await db.commit()
    await db.refresh(membership)
    return DataResponse(data=MembershipRead.model_validate(membership))


@router.post("/memberships/{membership_id}/cancel", response_model=DataResponse[MembershipRead], dependencies=[Depends(require_permission(PERM_LIBRARY_MANAGE))])
async def cancel_membership(membership_id: int, user: CurrentUser, db: DbSession):
    membership = await _get_membership_or_404(db, membership_id)
    membership.status = MembershipStatus.CANCELLED
    membership.membership_end = membership.membership_end or school_today()
    record_activity(db, user.id, "cancel", "library_membership", membership.id)
    await db.commit()
    await db.refresh(membership)
    return DataResponse(data=MembershipRead.model_validate(membership))


# --- Circulation ---

@router.get("/issues", response_model=DataResponse[list[BookIssueDetail]], dependencies=[Depends(require_permission(PERM_LIBRARY_VIEW))])
async def get_issues(
    db: DbSession,
    status: Optional[BookIssueStatus] = None,
    student_id: Optional[int] = None,
    book_id: Optional[int] = None,
    overdue_only: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    today = school_today()
    conditions = []
    if status:
        conditions.append(BookIssue.status == status)
    if student_id:
        conditions.append(BookIssue.student_id == student_id)
    if book_id:
        conditions.append(BookIssue.book_id == book_id)
    if overdue_only:
        conditions.append(BookIssue.status == BookIssueStatus.ISSUED)
        conditions.append(BookIssue.due_date < today)

    result = await db.execute(
        select(BookIssue, Book.title, Student.full_name, Student.registration_number)
        .join(Book, BookIssue.book_id == Book.id)
        .join(Student, BookIssue.student_id == Student.id)
        .where(*conditions)
        .order_by(BookIssue.issue_date.desc(), BookIssue.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    issues = []
    for issue, title, student_name, registration_number in result.all():
        data = BookIssueRead.model_validate(issue).model_dump()
        issues.append(BookIssueDetail(
            **data,
            book_title=title,
            student_name=student_name,
            registration_number=registration_number,
            overdue_days=overdue_days(issue.due_date, today) if issue.status == BookIssueStatus.ISSUED else 0,
        ))

    count_result = await db.execute(select(func.count(BookIssue.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(data=issues, meta=PaginationMeta.build(page, page_size, total))


@router.post("/issues", response_model=DataResponse[BookIssueRead], dependencies=[Depends(require_permission(PERM_LIBRARY_CIRCULATE))])
async def create_issue(data: BookIssueCreate, user: CurrentUser, db: DbSession):
    try:
        issue = await issue_book(db, data, user.id, school_today())
        return DataResponse(data=BookIssueRead.model_validate(issue))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/issues/{issue_id}/return", response_model=DataResponse[ReturnResult], dependencies=[Depends(require_permission(PERM_LIBRARY_CIRCULATE))])
async def return_issue(issue_id: int, user: CurrentUser, db: DbSession):
    try:
        issue, fine = await return_book(db, issue_id, user.id, school_today())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DataResponse(data=ReturnResult(
        issue=BookIssueRead.model_validate(issue),
        fine=LibraryFineRead.model_validate(fine) if fine else None,
    ))


@router.post("/issues/{issue_id}/lost", response_model=DataResponse[ReturnResult], dependencies=[Depends(require_permission(PERM_LIBRARY_CIRCULATE))])
async def report_lost(issue_id: int, user: CurrentUser, db: DbSession):
    try:
        issue, fine = await mark_book_lost(db, issue_id, user.id, school_today())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DataResponse(data=ReturnResult(
        issue=BookIssueRead.model_validate(issue),
        fine=LibraryFineRead.model_validate(fine),
    ))


# --- Fines ---

@router.get("/fines", response_model=DataResponse[list[LibraryFineRead]], dependencies=[Depends(require_permission(PERM_LIBRARY_VIEW))])
async def get_fines(
    db: DbSession,
    status: Optional[FineStatus] = None,
    student_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if status:
        conditions.append(LibraryFine.status == status)
    if student_id:
        conditions.append(LibraryFine.student_id == student_id)

    result = await db.execute(
        select(LibraryFine)
        .where(*conditions)
        .order_by(LibraryFine.created_at.desc(), LibraryFine.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    fines = result.scalars().all()

    count_result = await db.execute(select(func.count(LibraryFine.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[LibraryFineRead.model_validate(f) for f in fines],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("/fines/{fine_id}/pay", response_model=DataResponse[LibraryFineRead], dependencies=[Depends(require_permission(PERM_LIBRARY_FINES))])
async def collect_fine(fine_id: int, data: FinePayment, user: CurrentUser, db: DbSession):
    try:
        fine = await pay_fine(db, fine_id, data.amount, user.id, school_today())
        return DataResponse(data=LibraryFineRead.model_validate(fine))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/fines/{fine_id}/waive", response_model=DataResponse[LibraryFineRead], dependencies=[Depends(require_permission(PERM_LIBRARY_FINES))])
async def waive_library_fine(fine_id: int, data: FineWaive, user: CurrentUser, db: DbSession):
    try:
        fine = await waive_fine(db, fine_id, data.reason, user.id)
        return DataResponse(data=LibraryFineRead.model_validate(fine))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/stats", response_model=DataResponse[LibraryStats], dependencies=[Depends(require_permission(PERM_LIBRARY_VIEW))])
async def get_library_stats(db: DbSession):
    return DataResponse(data=await library_stats(db))
