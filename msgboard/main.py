import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import msgboard.models  # noqa: F401  (registers tables on Base.metadata)
from msgboard.config import Settings
from msgboard.database import Base, engine, get_db
from msgboard.routers import auth, messages, stats
from msgboard.services.errors import AuthError, DependencyError, ValidationError
from msgboard.services.mailer import ResendNotifier
from msgboard.services.sessions import ResetTokenRegistry, SessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("database tables checked/created")
    yield


def _first_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{field}: {err.get('msg')}" if field else err.get("msg", "Invalid request")


def create_app(settings: Settings | None = None, sessions: SessionStore | None = None, notifier=None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Message Board", lifespan=lifespan)

    app.state.settings = settings
    app.state.sessions = sessions or SessionStore(ttl_seconds=settings.session_ttl_seconds)
    app.state.notifier = notifier or ResendNotifier.from_settings(settings)
    app.state.reset_tokens = ResetTokenRegistry() if settings.strict_reset_tokens else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        err = ValidationError(_first_error(exc))
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    app.include_router(auth.router)
    app.include_router(messages.router)
    app.include_router(stats.router)

    @app.get("/health")
    def health_check():
        return {
            "status": "OK",
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/test-db")
    def test_db(db: Session = Depends(get_db)):
        try:
            solution = db.execute(text("SELECT 1 + 1 AS solution")).scalar_one()
        except SQLAlchemyError as e:
            logger.error("database check failed: %s", e)
            err = DependencyError("Database connection failed")
            return JSONResponse(status_code=500, content=err.to_dict())
        return {"success": True, "message": "Database connection OK", "data": {"solution": solution}}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("msgboard.main:app", host="0.0.0.0", port=8000)
