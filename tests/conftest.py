"""Shared test fixtures and factories."""

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from lifeguard.analysis import AnalysisRequest, EmergencyAnalyzer, Language
from lifeguard.config.models import LifeguardConfig
from lifeguard.config.paths import get_lifeguard_home
from lifeguard.llm.base import InferenceClient
from lifeguard.llm.retry import RetryConfig
from lifeguard.llm.types import GenerateRequest, GenerateResult

# =============================================================================
# Endpoint Fakes
# =============================================================================


class FakeAPIError(Exception):
    """Mimics the shape of SDK API errors (numeric code, status name)."""

    def __init__(self, code: int, status: str = "", message: str = ""):
        self.code = code
        self.status = status
        self.message = message
        super().__init__(f"{code} {status}. {message}".strip())


class FakeClient(InferenceClient):
    """Inference client that replays scripted results and errors."""

    def __init__(
        self,
        responses: list[str | BaseException] | None = None,
        *,
        configured: bool = True,
    ):
        self.responses = list(responses or [])
        self.requests: list[GenerateRequest] = []
        self._configured = configured

    @property
    def name(self) -> str:
        return "fake"

    @property
    def default_model(self) -> str:
        return "fake-model"

    @property
    def configured(self) -> bool:
        return self._configured

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def generate(self, request: GenerateRequest) -> GenerateResult:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError("FakeClient ran out of scripted responses")
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return GenerateResult(text=item, model=request.model or self.default_model)


def instruction_json(**overrides: Any) -> str:
    """Serialize a well-formed model response with optional overrides."""
    payload: dict[str, Any] = {
        "type": "Severe Bleeding",
        "dangerLevel": "CRITICAL",
        "actions": ["Apply firm pressure", "Call emergency services"],
        "warning": "Do not remove the cloth",
        "reasoning": "Heavy bleeding from the forearm",
    }
    payload.update(overrides)
    return json.dumps({k: v for k, v in payload.items() if v is not ...})


# =============================================================================
# Backoff Recording
# =============================================================================


@pytest.fixture
def backoff_waits(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace backoff sleeps with a recorder; returns delays in seconds."""
    waits: list[float] = []

    async def _record(delay_s: float, cancel) -> None:  # noqa: ANN001
        waits.append(delay_s)

    monkeypatch.setattr("lifeguard.llm.retry._wait_for_backoff", _record)
    return waits


# =============================================================================
# Analysis Fixtures
# =============================================================================


@pytest.fixture
def fast_retry() -> RetryConfig:
    """Retry config with the default budget and no real delay."""
    return RetryConfig(enabled=True, max_attempts=5, base_delay_ms=1)


@pytest.fixture
def analysis_request() -> AnalysisRequest:
    """A frame with audio in English."""
    return AnalysisRequest(
        image=b"\xff\xd8\xff\xe0fake-jpeg",
        audio=b"\x1aE\xdf\xa3fake-webm",
        language=Language.ENGLISH,
    )


@pytest.fixture
def make_analyzer(fast_retry: RetryConfig):
    """Factory for analyzers wrapped around a FakeClient."""

    def _make(
        responses: list[str | BaseException] | None = None,
        *,
        configured: bool = True,
        retry: RetryConfig | None = None,
    ) -> tuple[EmergencyAnalyzer, FakeClient]:
        client = FakeClient(responses, configured=configured)
        analyzer = EmergencyAnalyzer(client, retry=retry or fast_retry)
        return analyzer, client

    return _make


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep tests away from real API keys and the user's home directory."""
    for var in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY", "LIFEGUARD_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("LIFEGUARD_HOME", str(tmp_path / "lifeguard-home"))
    monkeypatch.chdir(tmp_path)
    get_lifeguard_home.cache_clear()
    yield
    get_lifeguard_home.cache_clear()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler changes made by configure_logging()."""
    root = logging.getLogger()
    before, level = set(root.handlers), root.level
    yield
    for handler in root.handlers[:]:
        # pytest adds and removes its own capture handlers per phase
        if handler in before or type(handler).__module__.startswith("_pytest"):
            continue
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)


@pytest.fixture
def minimal_config() -> LifeguardConfig:
    """Configuration with an API key and fast retries."""
    return LifeguardConfig.model_validate(
        {
            "gemini": {"api_key": "test-key"},
            "retry": {"base_delay_ms": 1},
        }
    )


@pytest.fixture
def config_toml_content() -> str:
    """Valid TOML config content."""
    return """
[gemini]
api_key = "file-key"
model = "gemini-test"
temperature = 0.2

[retry]
max_attempts = 3
base_delay_ms = 500

[analysis]
emergency_types = ["Severe Bleeding", "Fire or Smoke", "Choking", "Not an Emergency"]

[server]
port = 9090
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "custom.toml"
    config_path.write_text(config_toml_content)
    return config_path


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})
