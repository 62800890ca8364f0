from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

# Версия API, которую клиент сообщает серверу в каждом вызове.
API_VERSION = "2.237"


@dataclass
class Request:
    method: str
    params: list[Any] = field(default_factory=lambda: [[], {"version": API_VERSION}])

    @property
    def args(self) -> list[Any]:
        return self.params[0]

    @property
    def options(self) -> dict[str, Any]:
        return self.params[1]

    def to_dict(self) -> dict[str, Any]:
        return {"method": self.method, "params": self.params}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def new_request(method: str, args: list[Any] | None = None, params: dict[str, Any] | None = None) -> Request:
    """Build a JSON-RPC request for ``method``.

    ``params`` is modified in place: its ``version`` entry is always set to
    :data:`API_VERSION`, whatever the caller put there. Method names and
    argument shapes are not validated, the server decides what is valid.
    """
    if args is None:
        args = []
    if params is None:
        params = {}
    params["version"] = API_VERSION
    return Request(method=method, params=[args, params])
