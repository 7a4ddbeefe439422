"""JSON-lines messages exchanged between the practice UI and the engine."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional


class ProtocolError(ValueError):
    """A line could not be turned into a request."""


def _encode(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False) + "\n"


@dataclass
class Request:
    """One call from the UI: ``{"id": 1, "method": "submit", "params": {...}}``."""
    id: int
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Request:
        if "method" not in data:
            raise ProtocolError("Request has no method")
        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise ProtocolError("Request params must be an object")
        return cls(id=data.get("id", 0), method=str(data["method"]), params=params)

    @classmethod
    def from_line(cls, line: str) -> Request:
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON: {e}") from None
        if not isinstance(data, dict):
            raise ProtocolError("Request must be a JSON object")
        return cls.from_dict(data)


@dataclass
class Response:
    """Reply to a request; exactly one of ``result`` or ``error`` is sent."""
    id: int
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    def to_json_line(self) -> str:
        d: dict[str, Any] = {"id": self.id}
        if self.error is not None:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return _encode(d)


@dataclass
class Notification:
    """Engine-initiated event such as ``exerciseCompleted``; never answered."""
    method: str
    params: dict = field(default_factory=dict)

    def to_json_line(self) -> str:
        return _encode({"method": self.method, "params": self.params})
