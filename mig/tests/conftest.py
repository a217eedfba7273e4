import io
import json
import logging
import uuid

import pytest
from starlette.datastructures import MutableHeaders

from mig import Mig, MigConfig
from mig.core.logging_config import JsonFormatter


class RecordingSink:
    """In-memory ResponseSink that records what a handler sent."""

    def __init__(self):
        self.headers = MutableHeaders()
        self.status_calls = []
        self.body = bytearray()

    @property
    def code(self) -> int:
        return self.status_calls[0] if self.status_calls else 200

    async def write_header(self, code: int) -> None:
        self.status_calls.append(code)

    async def write(self, data: bytes) -> int:
        self.body.extend(data)
        return len(data)


class LogCapture:
    """JSON log lines written by a test logger."""

    def __init__(self):
        self.stream = io.StringIO()
        self.logger = logging.getLogger(f"mig.test.{uuid.uuid4().hex}")
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(JsonFormatter())
        self.logger.addHandler(handler)

    @property
    def text(self) -> str:
        return self.stream.getvalue()

    @property
    def records(self) -> list:
        return [json.loads(line) for line in self.text.splitlines() if line.strip()]


@pytest.fixture
def logs():
    return LogCapture()


@pytest.fixture
def app(logs):
    return Mig(config=MigConfig(), logger=logs.logger)


@pytest.fixture
def sink():
    return RecordingSink()
