from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from checkmate.db import get_db
from checkmate.models.profile import Profile
from checkmate.schemas.profile import ProfileRead, ProfileUpsert


router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/{user_id}", response_model=ProfileRead)
def get_profile(user_id: str, db: Session = Depends(get_db)):
    row = db.query(Profile).filter(Profile.user_id == user_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Profile not set")
    return row


@router.put("/{user_id}", response_model=ProfileRead)
def upsert_profile(
    user_id: str,
    payload: ProfileUpsert,
    db: Session = Depends(get_db),
):
    handle = payload.instagram_username.strip().lstrip("@")
    if not handle:
        raise HTTPException(status_code=422, detail="instagram_username is required")

    row = db.query(Profile).filter(Profile.user_id == user_id).first()
    if not row:
        row = Profile(user_id=user_id, instagram_username=handle)
        db.add(row)
    else:
        row.instagram_username = handle
    db.commit()
    db.refresh(row)
    return row
