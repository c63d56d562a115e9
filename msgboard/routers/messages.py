from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, desc, or_, select
from sqlalchemy.orm import Session

from msgboard.database import get_db
from msgboard.models.message import Message
from msgboard.schemas.message import MessageCreate, MessageOut
from msgboard.services.authz import get_current_user
from msgboard.services.errors import NotFoundError, UnauthenticatedError, ValidationError
from msgboard.services.sessions import SessionUser

router = APIRouter(prefix="/api", tags=["messages"])


@router.get("/messages", response_model=list[MessageOut])
def list_messages(db: Session = Depends(get_db)):
    q = select(Message).order_by(desc(Message.timestamp), desc(Message.id))
    return db.execute(q).scalars().all()


@router.post("/messages")
def post_message(
    payload: MessageCreate,
    db: Session = Depends(get_db),
    user: SessionUser | None = Depends(get_current_user),
):
    msg = Message(
        author=payload.author.strip(),
        content=payload.content,
        user_id=user.id if user else None,
    )
    db.add(msg)
    db.commit()
    db.refresh(msg)
    return {"success": True, "message": "Message posted", "id": msg.id}


@router.delete("/messages/{message_id}")
def delete_message(message_id: int, db: Session = Depends(get_db)):
    res = db.execute(delete(Message).where(Message.id == message_id))
    db.commit()
    if res.rowcount == 0:
        raise NotFoundError("Message not found")
    return {"message": "Message deleted"}


@router.get("/my-messages", response_model=list[MessageOut])
def my_messages(
    db: Session = Depends(get_db),
    user: SessionUser | None = Depends(get_current_user),
):
    if user is None:
        raise UnauthenticatedError("Login required")
    q = (
        select(Message)
        .where(Message.user_id == user.id)
        .order_by(desc(Message.timestamp), desc(Message.id))
    )
    return db.execute(q).scalars().all()


@router.get("/search", response_model=list[MessageOut])
def search(q: str = Query(""), db: Session = Depends(get_db)):
    keyword = q.strip()
    if not keyword:
        raise ValidationError("Search keyword is required")

    term = f"%{keyword}%"
    stmt = (
        select(Message)
        .where(or_(Message.author.like(term), Message.content.like(term)))
        .order_by(desc(Message.timestamp), desc(Message.id))
    )
    return db.execute(stmt).scalars().all()
