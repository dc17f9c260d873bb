import secrets
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from checkmate.api.goals import request_now
from checkmate.core.config import settings
from checkmate.db import get_db
from checkmate.engine.sweep import run_sweep
from checkmate.schemas.sweep import SweepResult
from checkmate.services.penalty import get_penalty_sender


router = APIRouter(prefix="/sweep", tags=["sweep"])


def get_sender():
    return get_penalty_sender()


@router.post("/nightly-check", response_model=SweepResult)
def nightly_check(
    now: Optional[datetime] = Query(None, description="Override wall-clock time (ISO 8601)"),
    x_sweep_token: Optional[str] = Header(None),
    sender=Depends(get_sender),
    db: Session = Depends(get_db),
):
    """
    Penalize goals whose last closed period was missed.

    Meant to be hit by a scheduler at least once a day, shortly after the
    usual reset times. Safe to call repeatedly: each (goal, period) is
    penalized at most once.
    """
    if settings.sweep_token and not secrets.compare_digest(x_sweep_token or "", settings.sweep_token):
        raise HTTPException(status_code=401, detail="Invalid sweep token")

    summary = run_sweep(db, request_now(now), sender=sender)
    return SweepResult(**summary.as_dict())
