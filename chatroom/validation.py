"""
Payload validation for participants and messages.

Every violated constraint is reported, not just the first one, so callers get
the full list back in a single ValidationError.
"""

import pydantic

from chatroom.errors import ValidationError
from chatroom.models import MessageIn, ParticipantIn


def _error_list(exc: pydantic.ValidationError) -> list[str]:
    errors = []
    for err in exc.errors():
        field = '.'.join(str(part) for part in err['loc']) or 'body'
        errors.append(f"{field}: {err['msg']}")
    return errors


def validate_participant(payload) -> ParticipantIn:
    try:
        return ParticipantIn.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(_error_list(exc)) from exc


def validate_message(payload, sender: str | None) -> MessageIn:
    """Validate a message body; the author always comes from ``sender``.

    Any ``from`` key inside the body is discarded.
    """
    data = payload
    if isinstance(payload, dict):
        data = {key: value for key, value in payload.items() if key != 'from'}
        if sender is not None:
            data['from'] = sender
    try:
        return MessageIn.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(_error_list(exc)) from exc
