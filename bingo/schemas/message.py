"""Schemas for the message handling API."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from bingo.services.session_service import Command


class MessageRequestSchema(Schema):
    owner_id = fields.String(required=True, validate=validate.Length(min=1, max=64))

    command = fields.Enum(Command, by_value=True, required=True)

    text = fields.String(required=False, load_default="")

    card_id = fields.Integer(required=False, load_default=None, allow_none=True, validate=validate.Range(min=1))

    @validates_schema
    def _validate_card_id(self, data, **kwargs):  # type: ignore[no-untyped-def]
        if data.get("command") is Command.DELETE_CARD and data.get("card_id") is None:
            raise ValidationError({"card_id": ["Required for delete_card"]})


class MessageResponseSchema(Schema):
    # None when the bot stays silent.
    reply = fields.String(required=True, allow_none=True)
