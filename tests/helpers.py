from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from endpointkit.transport import TransportResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from endpointkit.request_builder import BuiltRequest


class ScriptedTransport:
    """Transport returning a fixed sequence of results and recording
    every request it receives."""

    def __init__(self, results: Iterable[TransportResult]) -> None:
        self.results = list(results)
        self.requests: list[BuiltRequest] = []

    async def execute(self, request: BuiltRequest) -> TransportResult:
        self.requests.append(request)
        return self.results.pop(0)


def make_result(status_code: int, payload: Any = None) -> TransportResult:
    """Create a transport result whose body is ``payload`` as JSON."""
    body = b"" if payload is None else json.dumps(payload).encode()
    return TransportResult(status_code=status_code, body=body)
