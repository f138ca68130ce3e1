"""Message routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from bingo.db import get_session
from bingo.repositories.bingo_card_repository import BingoCardRepository
from bingo.schemas.message import MessageRequestSchema, MessageResponseSchema
from bingo.services.session_service import SessionService
from bingo.utils.responses import ok

messages_bp = Blueprint("messages", __name__)

_request_schema = MessageRequestSchema()
_response_schema = MessageResponseSchema()


def _session_service() -> SessionService:
    store = current_app.extensions["state_store"]
    repository = BingoCardRepository(get_session())
    return SessionService.from_config(store, repository, current_app.config)


@messages_bp.post("/messages")
def handle_message():
    """Run one already-classified player message and return the reply."""

    payload = request.get_json(silent=True) or {}
    data = _request_schema.load(payload)

    reply = _session_service().handle(
        str(data["owner_id"]),
        data["command"],
        text=str(data.get("text") or "").strip(),
        card_id=data.get("card_id"),
    )

    # Commit occurs in teardown if no exception.
    return ok(_response_schema.dump({"reply": reply}))
