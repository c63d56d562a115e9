from datetime import timedelta

import msgboard.models  # noqa: F401
from msgboard.database import Base, SessionLocal, engine
from msgboard.models.message import Message
from msgboard.services.credentials import CredentialStore
from msgboard.services.passwords import hash_password
from msgboard.services.tokens import utcnow

SAMPLE_PASSWORD = "123456"


def seed(db):
    created = {"messages": 0, "users": 0}

    if db.query(Message).count() == 0:
        db.add(Message(author="System Admin", content="Database connected. Welcome to the message board."))
        db.add(Message(
            author="Test User",
            content="This is a test message stored in the database.",
            timestamp=utcnow() - timedelta(hours=1),
        ))
        db.commit()
        created["messages"] = 2

    store = CredentialStore(db)
    if store.count_users() == 0:
        password_hash = hash_password(SAMPLE_PASSWORD)
        store.insert_user("admin", "admin@example.com", password_hash, "System", "Admin")
        store.insert_user("testuser", "test@example.com", password_hash, "Test", "User")
        created["users"] = 2

    return created


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        res = seed(db)
        print(res)
    finally:
        db.close()


if __name__ == "__main__":
    main()
