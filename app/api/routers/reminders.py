from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.db.models.user import User as UserModel
from app.schemas.pagination import PaginatedResponse
from app.schemas.reminder import DeriveResult, DispatchResult, Reminder
from app.services.dispatch import dispatch_pending_reminders
from app.services.reminder import derive_reminders, get_all_reminders, get_reminder

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("", response_model=PaginatedResponse[Reminder])
def list_reminders(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    status: str | None = Query(None, description="pending or sent"),
    object_type: str | None = Query(None, description="Charge or Vehicle"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    reminders, total = get_all_reminders(
        db, page=page, page_size=page_size, status=status, object_type=object_type
    )
    return PaginatedResponse(
        items=[Reminder.model_validate(r) for r in reminders],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{reminder_id}", response_model=Reminder)
def get_reminder_by_id(
    reminder_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin", "accountant")),
):
    reminder = get_reminder(db, reminder_id)
    return Reminder.model_validate(reminder)


@router.post("/derive", response_model=DeriveResult)
def derive(
    as_of: date | None = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Evaluate reminder rules and record any new reminders."""
    as_of = as_of or date.today()
    created = derive_reminders(db, as_of)
    return DeriveResult(as_of=as_of, created=[Reminder.model_validate(r) for r in created])


@router.post("/dispatch", response_model=DispatchResult)
async def dispatch(
    as_of: date | None = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Email every pending reminder that is due."""
    summary = await dispatch_pending_reminders(db, as_of or date.today())
    return DispatchResult.model_validate(summary)
