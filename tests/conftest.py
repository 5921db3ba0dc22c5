from __future__ import annotations

import sys
from collections.abc import Iterable
from pathlib import Path

import pytest


def pytest_configure() -> None:
    project_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(project_root))


class FakeStream:
    """Hands out scripted recv() results; bytes are chunks, exceptions are raised."""

    def __init__(self, script: Iterable[bytes | BaseException]) -> None:
        self.script = list(script)
        self.calls = 0

    def recv(self, size: int) -> bytes:
        self.calls += 1
        if not self.script:
            return b""
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if len(item) > size:
            self.script.insert(0, item[size:])
            item = item[:size]
        return item


@pytest.fixture()
def stream():
    return FakeStream
