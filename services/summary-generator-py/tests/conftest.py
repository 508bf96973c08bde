import io
import json
from typing import Any, Dict, List

import pytest

from summary_generator.config import Config
from summary_generator.logging import JsonLogger


class CapturedLogger(JsonLogger):
    """JsonLogger writing to memory, with helpers to read records back."""

    def __init__(self, level: str = "debug") -> None:
        self.buffer = io.StringIO()
        super().__init__(level, stream=self.buffer)

    def records(self) -> List[Dict[str, Any]]:
        return [json.loads(line) for line in self.buffer.getvalue().splitlines() if line.strip()]

    def events(self) -> List[str]:
        return [r["event"] for r in self.records()]


@pytest.fixture
def logger() -> CapturedLogger:
    return CapturedLogger()


@pytest.fixture
def cfg() -> Config:
    return Config(
        log_level="info",
        llm_provider="bedrock",
        llm_api_base="https://bedrock-runtime.us-east-1.amazonaws.com",
        llm_api_key="test-key",
        llm_model="amazon.titan-text-express-v1",
        llm_response_schema="results",
        llm_timeout=20.0,
        summary_style="direct",
        host="127.0.0.1",
        port=8000,
    )
