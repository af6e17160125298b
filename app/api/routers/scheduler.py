from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_cron_secret
from app.schemas.scheduler import TickSummary
from app.services.scheduler import run_scheduled_tick

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.post("/tick", response_model=TickSummary, dependencies=[Depends(require_cron_secret)])
async def tick(
    as_of: date | None = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
):
    """
    Daily batch run for the external cron trigger.

    Requires the X-Cron-Secret header to match CRON_SECRET.
    """
    summary = await run_scheduled_tick(db, as_of or date.today())
    return TickSummary.model_validate(summary)
