from datetime import datetime, time, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from msgboard.database import get_db
from msgboard.models.message import Message
from msgboard.services.tokens import utcnow

router = APIRouter(prefix="/api", tags=["stats"])


@router.get("/stats")
def overview(db: Session = Depends(get_db)):
    start = datetime.combine(utcnow().date(), time.min)
    end = start + timedelta(days=1)

    total = db.execute(select(func.count(Message.id))).scalar_one()
    today = db.execute(
        select(func.count(Message.id))
        .where(Message.timestamp >= start)
        .where(Message.timestamp < end)
    ).scalar_one()

    return {"total": total, "today": today}
