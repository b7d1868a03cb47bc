"""HTML views that render user records as cards."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .api import UserId, user_to_response
from .database import Database
from .models import User
from .presentation import UserCard, card_from_record

logger = logging.getLogger("userhub.web")

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


def _template_environment() -> Jinja2Templates:
    return Jinja2Templates(directory=str(TEMPLATE_DIR))


def _user_to_card(user: User) -> UserCard:
    return card_from_record(user_to_response(user).model_dump(mode="json"))


def register_ui_routes(app: FastAPI, database: Database) -> None:
    """Attach the card pages to ``app``."""

    templates = _template_environment()

    @app.get("/users", response_class=HTMLResponse, include_in_schema=False)
    async def user_cards(request: Request) -> HTMLResponse:
        cards = [_user_to_card(user) for user in database.list_users()]
        return templates.TemplateResponse(
            request,
            "users.html",
            {"cards": cards},
        )

    @app.get("/users/{user_id}", response_class=HTMLResponse, include_in_schema=False)
    async def user_card(request: Request, user_id: UserId) -> HTMLResponse:
        user = database.get_user(user_id)
        if user is None:
            logger.warning("Card requested for unknown user %s", user_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return templates.TemplateResponse(
            request,
            "user_card.html",
            {"card": _user_to_card(user)},
        )


__all__ = ["register_ui_routes"]
