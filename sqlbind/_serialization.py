import datetime
import enum
from decimal import Decimal
from typing import Any, Literal, Union, overload
from uuid import UUID

import msgspec

__all__ = ("decode_json", "encode_json")


def _type_to_string(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return repr(value)


_encoder = msgspec.json.Encoder(enc_hook=_type_to_string)
_decoder = msgspec.json.Decoder()


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode data to JSON using msgspec.

    Values msgspec cannot encode natively fall back to a string form, so
    log records never fail to serialize.
    """
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: Union[str, bytes]) -> Any:
    """Decode a JSON document using msgspec."""
    return _decoder.decode(data)
