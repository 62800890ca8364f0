"""JSON-RPC response envelope and typed accessors over its result.

FreeIPA is loose about value shapes: an attribute can come back as a bare
scalar or as a list (multi-valued LDAP attribute), binary data and timestamps
are wrapped in ``{"__base64__": ...}`` / ``{"__datetime__": ...}``. The
accessors below hide that. They follow a ``(value, ok)`` contract and never
raise on a shape mismatch; a missing key or a wrong type gives the zero value
and ``False``.

``result.result`` depends on the command (see FreeIPA doc/api): a bool for
``*_status``-like calls, a mapping for ``*_show``/``*_add``, a list of
mappings for ``*_find``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError

from .errors import APIError, DecodeError
from .utils import (
    BASE64_TAG,
    DATETIME_TAG,
    decode_base64,
    parse_generalized_time,
    unwrap_tag,
)

log = logging.getLogger(__name__)

JSONValue = Union[None, bool, int, float, str, list[Any], dict[str, Any]]
Entry = dict[str, JSONValue]

T = TypeVar("T")


class Message(BaseModel):
    """Error or advisory message."""

    type: str = ""
    message: str = ""
    code: int = 0
    name: str = ""

    def __str__(self) -> str:
        return f"{self.name} ({self.code}): {self.message}"


class Result(BaseModel):
    count: int = 0
    truncated: bool = False
    messages: Optional[list[Message]] = None
    result: Any = None
    summary: Optional[str] = None
    value: Any = None


class Envelope(BaseModel):
    error: Optional[Message] = None
    result: Optional[Result] = None
    version: Optional[str] = None
    principal: Optional[str] = None
    id: Any = Field(default=None)


def parse_response(raw: Union[bytes, str]) -> "Response":
    """Decode a ``/session/json`` body.

    Raises:
        DecodeError: malformed JSON, not an envelope, or no result.
        APIError: the server returned an error envelope.
    """
    try:
        env = Envelope.model_validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"invalid response: {e}") from e

    if env.error is not None:
        err = env.error
        log.debug("API error %s (%s) from server", err.name, err.code)
        raise APIError(err.name, err.code, err.message)
    if env.result is None:
        raise DecodeError("no result in response")
    return Response(result=env.result, version=env.version or "", principal=env.principal or "")


def lookup(entry: Entry, key: str) -> tuple[list[Any], bool]:
    """Value of ``key`` as a list; a bare value becomes a one-element list."""
    if key not in entry:
        return [], False
    v = entry[key]
    if isinstance(v, list):
        return v, True
    # FreeIPA иногда отдаёт одиночное значение без массива.
    return [v], True


# --- element projections (all-or-nothing) ---------------------------------

def _as_bool(v: Any) -> tuple[bool, bool]:
    if isinstance(v, bool):
        return v, True
    return False, False


def _as_str(v: Any) -> tuple[str, bool]:
    if isinstance(v, str):
        return v, True
    return "", False


def _as_bytes(v: Any) -> tuple[bytes, bool]:
    s = unwrap_tag(v, BASE64_TAG)
    if s is None:
        return b"", False
    data = decode_base64(s)
    if data is None:
        return b"", False
    return data, True


def _as_datetime(v: Any) -> tuple[Optional[datetime], bool]:
    s = unwrap_tag(v, DATETIME_TAG)
    if s is None:
        return None, False
    dt = parse_generalized_time(s)
    return dt, dt is not None


def _project(values: list[Any], fn: Callable[[Any], tuple[T, bool]]) -> tuple[list[T], bool]:
    out: list[T] = []
    for v in values:
        x, ok = fn(v)
        if not ok:
            return [], False
        out.append(x)
    return out, True


def _first(values: tuple[list[T], bool], default: T) -> tuple[T, bool]:
    items, ok = values
    if not ok or not items:
        return default, False
    return items[0], True


@dataclass
class Response:
    result: Result
    version: str = ""
    principal: str = ""

    @property
    def payload(self) -> JSONValue:
        return self.result.result if self.result is not None else None

    def messages(self) -> list[Message]:
        if self.result is None:
            return []
        return list(self.result.messages or [])

    def bool_result(self) -> bool:
        """Payload of calls whose result is a single boolean."""
        v = self.payload
        return v if isinstance(v, bool) else False

    def count_results(self) -> int:
        """Number of entries of a list result; -1 when the result is not a list."""
        v = self.payload
        if not isinstance(v, list):
            return -1
        return len(v)

    # --- entries -------------------------------------------------------------

    def entry(self) -> tuple[Entry, bool]:
        v = self.payload
        if not isinstance(v, dict):
            return {}, False
        return v, True

    def entry_at_index(self, index: int) -> tuple[Entry, bool]:
        v = self.payload
        if not isinstance(v, list):
            return {}, False
        if index < 0 or index >= len(v):
            return {}, False
        e = v[index]
        if not isinstance(e, dict):
            return {}, False
        return e, True

    def keys(self) -> tuple[set[str], bool]:
        e, ok = self.entry()
        return (set(e), True) if ok else (set(), False)

    def keys_at_index(self, index: int) -> tuple[set[str], bool]:
        e, ok = self.entry_at_index(index)
        return (set(e), True) if ok else (set(), False)

    def get(self, key: str) -> tuple[list[Any], bool]:
        e, ok = self.entry()
        if not ok:
            return [], False
        return lookup(e, key)

    def get_at_index(self, index: int, key: str) -> tuple[list[Any], bool]:
        e, ok = self.entry_at_index(index)
        if not ok:
            return [], False
        return lookup(e, key)

    def _values(self, key: str, index: Optional[int]) -> tuple[list[Any], bool]:
        if index is None:
            return self.get(key)
        return self.get_at_index(index, key)

    def _typed(self, key: str, index: Optional[int], fn: Callable[[Any], tuple[T, bool]]) -> tuple[list[T], bool]:
        values, ok = self._values(key, index)
        if not ok:
            return [], False
        return _project(values, fn)

    # --- bool ----------------------------------------------------------------

    def get_bools(self, key: str) -> tuple[list[bool], bool]:
        return self._typed(key, None, _as_bool)

    def get_bools_at_index(self, index: int, key: str) -> tuple[list[bool], bool]:
        return self._typed(key, index, _as_bool)

    def get_bool(self, key: str) -> tuple[bool, bool]:
        return _first(self.get_bools(key), False)

    def get_bool_at_index(self, index: int, key: str) -> tuple[bool, bool]:
        return _first(self.get_bools_at_index(index, key), False)

    # --- str -----------------------------------------------------------------

    def get_strings(self, key: str) -> tuple[list[str], bool]:
        return self._typed(key, None, _as_str)

    def get_strings_at_index(self, index: int, key: str) -> tuple[list[str], bool]:
        return self._typed(key, index, _as_str)

    def get_string(self, key: str) -> tuple[str, bool]:
        return _first(self.get_strings(key), "")

    def get_string_at_index(self, index: int, key: str) -> tuple[str, bool]:
        return _first(self.get_strings_at_index(index, key), "")

    # --- bytes (__base64__) --------------------------------------------------

    def get_datas(self, key: str) -> tuple[list[bytes], bool]:
        return self._typed(key, None, _as_bytes)

    def get_datas_at_index(self, index: int, key: str) -> tuple[list[bytes], bool]:
        return self._typed(key, index, _as_bytes)

    def get_data(self, key: str) -> tuple[bytes, bool]:
        return _first(self.get_datas(key), b"")

    def get_data_at_index(self, index: int, key: str) -> tuple[bytes, bool]:
        return _first(self.get_datas_at_index(index, key), b"")

    # --- datetime (__datetime__) ---------------------------------------------

    def get_datetimes(self, key: str) -> tuple[list[datetime], bool]:
        return self._typed(key, None, _as_datetime)

    def get_datetimes_at_index(self, index: int, key: str) -> tuple[list[datetime], bool]:
        return self._typed(key, index, _as_datetime)

    def get_datetime(self, key: str) -> tuple[Optional[datetime], bool]:
        return _first(self.get_datetimes(key), None)

    def get_datetime_at_index(self, index: int, key: str) -> tuple[Optional[datetime], bool]:
        return _first(self.get_datetimes_at_index(index, key), None)
