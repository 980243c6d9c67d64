"""JSON codec for cached records.

Serializes pydantic models with orjson using their JSON aliases. Sequences
are encoded as JSON arrays; the empty sequence encodes to ``b"[]"`` and
decodes back to ``[]``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Generic, TypeVar

import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError

from cacheside.core.errors import DecodeError

ModelT = TypeVar("ModelT", bound=BaseModel)

ORJSON_OPTIONS = orjson.OPT_NON_STR_KEYS | orjson.OPT_UTC_Z


class JsonCodec(Generic[ModelT]):
    """Encode/decode one pydantic model type to canonical JSON bytes."""

    def __init__(self, model: type[ModelT]):
        self.model = model
        self._many: TypeAdapter[list[ModelT]] = TypeAdapter(list[model])  # type: ignore[valid-type]

    def encode(self, record: ModelT) -> bytes:
        return orjson.dumps(record.model_dump(mode="json", by_alias=True), option=ORJSON_OPTIONS)

    def encode_many(self, records: Sequence[ModelT]) -> bytes:
        payload = [record.model_dump(mode="json", by_alias=True) for record in records]
        return orjson.dumps(payload, option=ORJSON_OPTIONS)

    def decode(self, data: bytes) -> ModelT:
        try:
            return self.model.model_validate_json(data)
        except ValidationError as e:
            raise DecodeError(f"Cannot decode {self.model.__name__}: {e}") from e

    def decode_many(self, data: bytes) -> list[ModelT]:
        try:
            return self._many.validate_json(data)
        except ValidationError as e:
            raise DecodeError(f"Cannot decode list of {self.model.__name__}: {e}") from e
