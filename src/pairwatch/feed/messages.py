"""
Live feed message types.

Inbound messages are a tagged union keyed by `topic`. Known topics decode
into typed models; everything else becomes `UnknownFeedMessage`, which the
feed ignores.
"""

import base64
import json
import logging
from typing import Any, Dict, Optional, Type, Union

import msgpack
from pydantic import BaseModel, ValidationError

from pairwatch.config import GAS_PRICES_TOPIC
from pairwatch.models import GasPrices

logger = logging.getLogger(__name__)


class GasPricesMessage(BaseModel):
    topic: str
    data: GasPrices


class UnknownFeedMessage(BaseModel):
    topic: Optional[str] = None
    raw: Any = None


FeedMessage = Union[GasPricesMessage, UnknownFeedMessage]

# Topics are matched by prefix so parameterized topics
# (e.g. "ethGas:getGasPrices:mainnet") still route to their model
TOPIC_MODELS: Dict[str, Type[BaseModel]] = {
    GAS_PRICES_TOPIC: GasPricesMessage,
}


def subscribe_message(topics: list[str]) -> str:
    return json.dumps({"op": "subscribe", "topics": topics})


def decode_frame(content: Union[str, bytes]) -> Any:
    """
    Decode a websocket frame - JSON for text, msgpack first for binary.

    ## Returns
    Decoded payload, or `None` when the frame cannot be decoded
    """
    if isinstance(content, bytes):
        try:
            return msgpack.unpackb(content, raw=False)
        except Exception:
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError:
                logger.warning(
                    "Dropping undecodable binary frame: base64:"
                    + base64.b64encode(content[:64]).decode()
                )
                return None

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse feed message as JSON: {content[:100]}...")
        return None


def match_topic(topic: str) -> Optional[str]:
    for prefix in TOPIC_MODELS:
        if topic.startswith(prefix):
            return prefix
    return None


def decode_feed_message(payload: Any) -> FeedMessage:
    """
    Turn a decoded payload into a typed feed message.

    Payloads without a string `topic`, with an unrecognized topic, or whose
    body fails validation for their topic all come back as
    `UnknownFeedMessage`.
    """
    if not isinstance(payload, dict):
        return UnknownFeedMessage(raw=payload)

    topic = payload.get("topic")
    if not isinstance(topic, str) or not topic:
        return UnknownFeedMessage(raw=payload)

    prefix = match_topic(topic)
    if prefix is None:
        return UnknownFeedMessage(topic=topic, raw=payload)

    try:
        return TOPIC_MODELS[prefix].model_validate(payload)  # type: ignore[return-value]
    except ValidationError as e:
        logger.warning(f"Malformed {prefix} message ignored: {e.error_count()} error(s)")
        return UnknownFeedMessage(topic=topic, raw=payload)
