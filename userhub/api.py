"""FastAPI application that exposes the user write endpoints."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated, Dict, List

from fastapi import Depends, FastAPI, HTTPException, Path, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import ServiceConfig, load_config
from .database import Database, DatabaseError
from .models import User

logger = logging.getLogger("userhub.api")

USERS_PATH = "/api/go/users"

# SQLite INTEGER primary keys are signed 64-bit values.
MAX_USER_ID = 2**63 - 1

UserId = Annotated[int, Path(ge=1, le=MAX_USER_ID)]


class UserPayload(BaseModel):
    """Body accepted by both the create and the update endpoint."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Contact email address")


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def create_app(
    *,
    config: ServiceConfig | None = None,
    database: Database | None = None,
    initialize_database: bool = False,
) -> FastAPI:
    if database is None:
        if config is None:
            config = load_config()
        database = Database(config.database_path, busy_timeout=config.busy_timeout)
        database.initialize()
        logger.info("Using database at %s", database.path)
    elif initialize_database:
        database.initialize()

    app = FastAPI(
        title="User Directory",
        description="Create and update user records",
        version="1.0.0",
    )
    app.state.database = database

    def get_db() -> Database:
        return database

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post(USERS_PATH, response_model=UserResponse)
    async def create_user(payload: UserPayload, db: Database = Depends(get_db)) -> UserResponse:
        user = db.create_user(payload.name, payload.email)
        logger.info("Created user %s", user.id)
        return user_to_response(user)

    @app.put(f"{USERS_PATH}/{{user_id}}", response_model=UserResponse)
    async def update_user(
        user_id: UserId,
        payload: UserPayload,
        db: Database = Depends(get_db),
    ) -> UserResponse:
        refreshed = db.update_user(user_id, name=payload.name, email=payload.email)
        if refreshed is None:
            logger.warning("Update requested for unknown user %s", user_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        logger.info("Updated user %s", refreshed.id)
        return user_to_response(refreshed)

    @app.get(USERS_PATH, response_model=List[UserResponse])
    async def list_users(db: Database = Depends(get_db)) -> List[UserResponse]:
        return [user_to_response(user) for user in db.list_users()]

    @app.get(f"{USERS_PATH}/{{user_id}}", response_model=UserResponse)
    async def read_user(user_id: UserId, db: Database = Depends(get_db)) -> UserResponse:
        user = db.get_user(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user_to_response(user)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.info("Rejected malformed request to %s %s", request.method, request.url.path)
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder({"detail": "Invalid request body", "errors": errors}),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.exception("Store failure while handling %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Database error"},
        )

    return app


__all__ = ["MAX_USER_ID", "UserId", "UserPayload", "UserResponse", "create_app", "user_to_response"]
