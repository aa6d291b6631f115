from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from schoolms.core.permissions import PERM_EXPENSES_MANAGE
from schoolms.models.finance import SchoolExpense
from schoolms.schemas.finance import ExpenseRead, ExpenseCreate, ExpenseUpdate
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity
from schoolms.services.fees import to_money

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("", response_model=DataResponse[list[ExpenseRead]], dependencies=[Depends(require_permission(PERM_EXPENSES_MANAGE))])
async def get_expenses(
    db: DbSession,
    category: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if category:
        conditions.append(SchoolExpense.category == category)
    if from_date:
        conditions.append(SchoolExpense.expense_date >= from_date)
    if to_date:
        conditions.append(SchoolExpense.expense_date <= to_date)

    result = await db.execute(
        select(SchoolExpense)
        .where(*conditions)
        .order_by(SchoolExpense.expense_date.desc(), SchoolExpense.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    expenses = result.scalars().all()

    count_result = await db.execute(select(func.count(SchoolExpense.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[ExpenseRead.model_validate(e) for e in expenses],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("", response_model=DataResponse[ExpenseRead], dependencies=[Depends(require_permission(PERM_EXPENSES_MANAGE))])
async def create_expense(data: ExpenseCreate, user: CurrentUser, db: DbSession):
    values = data.model_dump()
    values["amount"] = to_money(values["amount"])
    expense = SchoolExpense(**values, created_by_user_id=user.id)
    db.add(expense)
    await db.flush()
    record_activity(db, user.id, "create", "expense", expense.id, {"category": expense.category, "amount": str(expense.amount)})
    await db.commit()
    await db.refresh(expense)
    return DataResponse(data=ExpenseRead.model_validate(expense))


@router.patch("/{expense_id}", response_model=DataResponse[ExpenseRead], dependencies=[Depends(require_permission(PERM_EXPENSES_MANAGE))])
async def update_expense(expense_id: int, data: ExpenseUpdate, user: CurrentUser, db: DbSession):
    result = await db.execute(select(SchoolExpense).where(SchoolExpense.id == expense_id))
    expense = result.scalar_one_or_none()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    changes = data.model_dump(exclude_unset=True)
    if "amount" in changes:
        changes["amount"] = to_money(changes["amount"])
    for field, value in changes.items():
        setattr(expense, field, value)

    record_activity(db, user.id, "update", "expense", expense.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(expense)
    return DataResponse(data=ExpenseRead.model_validate(expense))


@router.delete("/{expense_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_EXPENSES_MANAGE))])
async def delete_expense(expense_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(SchoolExpense).where(SchoolExpense.id == expense_id))
    expense = result.scalar_one_or_none()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")

    await db.delete(expense)
    record_activity(db, user.id, "delete", "expense", expense_id)
    await db.commit()
    return DataResponse(data={"message": "Expense deleted successfully"})
