"""Tests for the OpenRouter gateway and its fallback rules."""

import json

import httpx
import pytest

from tutorhub.services.model_gateway import CapacityError, GatewayError, ModelGateway
from tutorhub.services.settings_store import AIConfig

MESSAGES = [
    {"role": "system", "content": "You are a tutor."},
    {"role": "user", "content": "What is inertia?"},
]


def completion(content: str) -> dict:
    return {
        "id": "gen-1",
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


class Recorder:
    """MockTransport handler that answers per model and records requests."""

    def __init__(self, responses: dict[str, httpx.Response | Exception]):
        self.responses = responses
        self.requests: list[dict] = []
        self.headers: list[httpx.Headers] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        self.headers.append(request.headers)
        response = self.responses[body["model"]]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def models(self) -> list[str]:
        return [r["model"] for r in self.requests]


def make_gateway(recorder: Recorder, fallback: str = "fallback/model") -> ModelGateway:
    return ModelGateway(
        "sk-test",
        "primary/model",
        fallback,
        base_url="https://openrouter.test/api/v1",
        transport=httpx.MockTransport(recorder),
    )


async def test_returns_first_choice_content():
    recorder = Recorder({"primary/model": httpx.Response(200, json=completion("Inertia is..."))})

    reply = await make_gateway(recorder).chat(MESSAGES)

    assert reply == "Inertia is..."
    assert recorder.models == ["primary/model"]
    assert recorder.requests[0]["messages"] == MESSAGES
    assert recorder.headers[0]["authorization"] == "Bearer sk-test"


@pytest.mark.parametrize("status_code", [429, 402])
async def test_capacity_status_falls_back_once_with_same_messages(status_code):
    recorder = Recorder({
        "primary/model": httpx.Response(
            status_code, json={"error": {"message": "Insufficient credits", "code": status_code}}
        ),
        "fallback/model": httpx.Response(200, json=completion("from fallback")),
    })

    reply = await make_gateway(recorder).chat(MESSAGES)

    assert reply == "from fallback"
    assert recorder.models == ["primary/model", "fallback/model"]
    assert recorder.requests[0]["messages"] == recorder.requests[1]["messages"]


async def test_error_code_in_ok_body_counts_as_capacity():
    recorder = Recorder({
        "primary/model": httpx.Response(200, json={"error": {"message": "Rate limit exceeded", "code": 429}}),
        "fallback/model": httpx.Response(200, json=completion("ok")),
    })

    assert await make_gateway(recorder).chat(MESSAGES) == "ok"
    assert recorder.models == ["primary/model", "fallback/model"]


async def test_capacity_error_without_fallback_is_raised():
    recorder = Recorder({"primary/model": httpx.Response(429, json={"error": {"message": "slow down", "code": 429}})})

    with pytest.raises(CapacityError) as exc_info:
        await make_gateway(recorder, fallback="").chat(MESSAGES)

    assert exc_info.value.status_code == 429
    assert recorder.models == ["primary/model"]


async def test_fallback_failure_is_final():
    recorder = Recorder({
        "primary/model": httpx.Response(429, json={"error": {"message": "quota", "code": 429}}),
        "fallback/model": httpx.Response(429, json={"error": {"message": "quota", "code": 429}}),
    })

    with pytest.raises(GatewayError) as exc_info:
        await make_gateway(recorder).chat(MESSAGES)

    assert exc_info.value.model == "fallback/model"
    assert recorder.models == ["primary/model", "fallback/model"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="upstream exploded"),
        httpx.Response(401, json={"error": {"message": "No auth credentials found", "code": 401}}),
        # Wording alone must not trigger failover
        httpx.Response(400, json={"error": {"message": "rate limit of the context window", "code": 400}}),
    ],
)
async def test_hard_errors_do_not_fall_back(response):
    recorder = Recorder({"primary/model": response, "fallback/model": httpx.Response(200, json=completion("x"))})

    with pytest.raises(GatewayError) as exc_info:
        await make_gateway(recorder).chat(MESSAGES)

    assert not isinstance(exc_info.value, CapacityError)
    assert recorder.models == ["primary/model"]


async def test_network_error_does_not_fall_back():
    recorder = Recorder({
        "primary/model": httpx.ConnectError("connection refused"),
        "fallback/model": httpx.Response(200, json=completion("x")),
    })

    with pytest.raises(GatewayError):
        await make_gateway(recorder).chat(MESSAGES)

    assert recorder.models == ["primary/model"]


async def test_timeout_is_a_gateway_error():
    recorder = Recorder({"primary/model": httpx.ReadTimeout("timed out")})

    with pytest.raises(GatewayError, match="timed out"):
        await make_gateway(recorder).chat(MESSAGES)


async def test_empty_choices_is_a_failure():
    recorder = Recorder({"primary/model": httpx.Response(200, json={"id": "gen-1", "choices": []})})

    with pytest.raises(GatewayError, match="No response choices"):
        await make_gateway(recorder).chat(MESSAGES)


async def test_null_content_is_a_failure():
    body = {"id": "gen-1", "choices": [{"message": {"role": "assistant", "content": None}}]}
    recorder = Recorder({"primary/model": httpx.Response(200, json=body)})

    with pytest.raises(GatewayError, match="Empty completion content") as exc_info:
        await make_gateway(recorder).chat(MESSAGES)

    assert not isinstance(exc_info.value, CapacityError)
    assert recorder.models == ["primary/model"]


async def test_non_json_body_is_a_failure():
    recorder = Recorder({"primary/model": httpx.Response(200, text="<html>oops</html>")})

    with pytest.raises(GatewayError, match="Malformed"):
        await make_gateway(recorder).chat(MESSAGES)


def test_from_config_uses_configured_models():
    config = AIConfig(
        api_key="sk-x",
        professor_prompt="p",
        task_assistant_prompt="t",
        primary_model="a/one",
        fallback_model="b/two",
    )

    gateway = ModelGateway.from_config(config)

    assert (gateway.api_key, gateway.primary_model, gateway.fallback_model) == ("sk-x", "a/one", "b/two")
