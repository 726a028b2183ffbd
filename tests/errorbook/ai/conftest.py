import base64
import types

import pytest

TAGGED_REPLY = (
    "<question_text>Q</question_text><answer_text>A</answer_text>"
    "<analysis>An</analysis><subject>数学</subject>"
)

IMAGE_B64 = base64.b64encode(b"\x89PNG fake image bytes").decode("ascii")


def _next_outcome(outcomes: list, kwargs: dict):
    # The last scripted outcome repeats forever.
    outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
    if callable(outcome) and not isinstance(outcome, BaseException):
        outcome = outcome(kwargs)
    if isinstance(outcome, BaseException):
        raise outcome
    return outcome


class FakeCompletions:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        text = _next_outcome(self.outcomes, kwargs)
        message = types.SimpleNamespace(content=text)
        return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)])


class FakeOpenAIClient:
    """Mimics `OpenAI().chat.completions.create`."""

    def __init__(self, *outcomes):
        self.completions = FakeCompletions(outcomes or [TAGGED_REPLY])
        self.chat = types.SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls


class FakeModels:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return types.SimpleNamespace(
            text=_next_outcome(self.outcomes, kwargs), usage_metadata=None
        )


class FakeGeminiClient:
    """Mimics `genai.Client().models.generate_content`."""

    def __init__(self, *outcomes):
        self.models = FakeModels(outcomes or [TAGGED_REPLY])

    @property
    def calls(self):
        return self.models.calls


class FakeTime:
    """Simulated clock: sleeping advances `now` instantly."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_time(monkeypatch):
    from errorbook.ai import _retry

    ft = FakeTime()
    monkeypatch.setattr(_retry, "time", ft)
    # jitter multiplier becomes exactly 1.0
    monkeypatch.setattr("errorbook.ai._retry.random.random", lambda: 0.5)
    return ft


@pytest.fixture
def tagged_reply():
    return TAGGED_REPLY


@pytest.fixture
def image_b64():
    return IMAGE_B64


@pytest.fixture
def make_openai_client():
    return FakeOpenAIClient


@pytest.fixture
def make_gemini_client():
    return FakeGeminiClient
