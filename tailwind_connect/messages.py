"""
Amino message payloads.

An :class:`~tailwind_connect.models.AminoMsg` carries an opaque ``value``
tagged by its ``type``. Payload models are registered per type; decoding a
message of an unregistered type keeps the raw value so newer message kinds
pass through untouched.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ._rate_limited_log import rate_limited_log
from .exceptions import CodecError
from .models import AminoMsg, Coin

logger = logging.getLogger(__name__)

MSG_SEND = "cosmos-sdk/MsgSend"
MSG_TRANSFER = "cosmos-sdk/MsgTransfer"


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class MsgSend(_Payload):
    """Bank transfer within one chain"""
    from_address: str
    to_address: str
    amount: Tuple[Coin, ...]


class Height(_Payload):
    revision_number: str = "0"
    revision_height: str = "0"


class MsgTransfer(_Payload):
    """IBC token transfer to another chain"""
    source_port: str = "transfer"
    source_channel: str
    token: Coin
    sender: str
    receiver: str
    timeout_height: Height = Field(default_factory=Height)
    timeout_timestamp: str = "0"
    memo: Optional[str] = None


@dataclass(frozen=True)
class DecodedMessage:
    """
    A message with its payload decoded.

    ``known`` is False when no codec is registered for ``type``; ``payload``
    is then the raw value.
    """
    type: str
    payload: Any
    known: bool


class MessageCodecRegistry:
    """Maps Amino type discriminators to payload models"""

    def __init__(self):
        self._codecs: Dict[str, Type[BaseModel]] = {}
        self._lock = threading.RLock()

    def register(self, msg_type: str, model: Type[BaseModel], replace: bool = False) -> None:
        """
        Register a payload model for ``msg_type``.

        Raises:
            ValueError: If the type is already registered and replace is False
        """
        if not msg_type:
            raise ValueError("msg_type must not be empty")
        with self._lock:
            if msg_type in self._codecs and not replace:
                raise ValueError(f"Codec already registered for {msg_type}")
            self._codecs[msg_type] = model

    def unregister(self, msg_type: str) -> None:
        with self._lock:
            self._codecs.pop(msg_type, None)

    def get(self, msg_type: str) -> Optional[Type[BaseModel]]:
        with self._lock:
            return self._codecs.get(msg_type)

    def types(self) -> List[str]:
        with self._lock:
            return sorted(self._codecs)

    def decode(self, msg: AminoMsg) -> DecodedMessage:
        """
        Decode ``msg.value`` with the codec registered for ``msg.type``.

        Raises:
            CodecError: If a codec is registered but the value does not fit it
        """
        model = self.get(msg.type)
        if model is None:
            rate_limited_log(
                "No codec registered for %s, passing payload through",
                msg.type,
                level="warning",
                logger_instance=logger,
            )
            return DecodedMessage(type=msg.type, payload=msg.value, known=False)

        try:
            payload = model.model_validate(msg.value)
        except ValidationError as e:
            raise CodecError(f"Invalid {msg.type} payload: {e}", msg_type=msg.type) from e
        return DecodedMessage(type=msg.type, payload=payload, known=True)

    def decode_all(self, msgs) -> List[DecodedMessage]:
        return [self.decode(m) for m in msgs]

    def encode(self, msg_type: str, payload: Any) -> AminoMsg:
        """
        Build an AminoMsg from a payload.

        Payload models are dumped to their wire form; anything else is used
        as the value unchanged.

        Raises:
            CodecError: If the payload model does not match the registered codec
        """
        model = self.get(msg_type)
        if isinstance(payload, BaseModel):
            if model is not None and not isinstance(payload, model):
                raise CodecError(
                    f"{type(payload).__name__} is not a {model.__name__} payload",
                    msg_type=msg_type,
                )
            value = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        else:
            value = payload
        return AminoMsg(type=msg_type, value=value)


_default_registry: Optional[MessageCodecRegistry] = None
_default_registry_lock = threading.Lock()


def default_registry() -> MessageCodecRegistry:
    """Shared registry with the built-in codecs"""
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            registry = MessageCodecRegistry()
            registry.register(MSG_SEND, MsgSend)
            registry.register(MSG_TRANSFER, MsgTransfer)
            _default_registry = registry
        return _default_registry
