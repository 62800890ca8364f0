from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime, timezone
from typing import Any, Optional

# LDAP GeneralizedTime as FreeIPA sends it: YYYYmmddHHMMSSZ, always UTC.
LDAP_GENERALIZED_TIME_FORMAT = "%Y%m%d%H%M%SZ"
_GT_RE = re.compile(r"^\d{14}Z$")

BASE64_TAG = "__base64__"
DATETIME_TAG = "__datetime__"


def unwrap_tag(v: Any, tag: str) -> Optional[str]:
    """Return the string inside ``{tag: "..."}`` or None if ``v`` is not such a wrapper."""
    if not isinstance(v, dict):
        return None
    s = v.get(tag)
    if not isinstance(s, str):
        return None
    return s


def decode_base64(s: str) -> Optional[bytes]:
    """Standard (non URL-safe) base64, padding required."""
    try:
        return base64.b64decode(s.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError):
        return None


def parse_generalized_time(s: str) -> Optional[datetime]:
    """20230810120000Z -> aware datetime in UTC. No fractional seconds."""
    if not _GT_RE.match(s):
        return None
    try:
        dt = datetime.strptime(s, LDAP_GENERALIZED_TIME_FORMAT)
    except ValueError:
        return None
    return dt.replace(tzinfo=timezone.utc)


def format_generalized_time(dt: datetime) -> str:
    """Inverse of :func:`parse_generalized_time`, for building request options."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(LDAP_GENERALIZED_TIME_FORMAT)


def datetime_value(dt: datetime) -> dict[str, str]:
    """Wrap a datetime the way the server expects it in request options."""
    return {DATETIME_TAG: format_generalized_time(dt)}


def base64_value(data: bytes) -> dict[str, str]:
    return {BASE64_TAG: base64.b64encode(data).decode("ascii")}
