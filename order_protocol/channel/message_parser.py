import json
from typing import Union

from pydantic import ValidationError

from ..core.errors import OrderbookChannelError
from ..core.types import OrderbookChannelMessageType, SnapshotMessage, UpdateMessage

ChannelMessage = Union[SnapshotMessage, UpdateMessage]

_MESSAGE_MODELS = {
    OrderbookChannelMessageType.SNAPSHOT.value: SnapshotMessage,
    OrderbookChannelMessageType.UPDATE.value: UpdateMessage,
}


def parse_channel_message(utf8_data: str) -> ChannelMessage:
    """
    Decodes one orderbook channel frame.
    Raises OrderbookChannelError on bad JSON, a missing requestId, an unknown type or an invalid payload.
    """
    try:
        raw = json.loads(utf8_data)
    except json.JSONDecodeError as e:
        raise OrderbookChannelError(f"Message is not valid JSON: {utf8_data}") from e

    if not isinstance(raw, dict):
        raise OrderbookChannelError(f"Message is not an object: {utf8_data}")
    request_id = raw.get("requestId")
    if not isinstance(request_id, int) or isinstance(request_id, bool):
        raise OrderbookChannelError(f"Message has no integer requestId: {utf8_data}")

    message_type = raw.get("type")
    model = _MESSAGE_MODELS.get(message_type) if isinstance(message_type, str) else None
    if model is None:
        raise OrderbookChannelError(f"Message has unknown type parameter: {utf8_data}", request_id=request_id)
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise OrderbookChannelError(f"Message has invalid payload: {e}", request_id=request_id) from e
