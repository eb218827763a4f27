"""Tests for the generate -> validate -> repair loop."""

import json

import pytest

from guildsmith.ai.generation import (
    CORRECTED_EXAMPLE,
    FEW_SHOT_VALID,
    build_generation_messages,
    generate_validated_blueprint,
)
from guildsmith.blueprint.schema import validate_blueprint
from guildsmith.errors import AIGatewayError, GenerationError
from guildsmith.testing.fakes import FakeNotifier

VALID = {"roles": [{"name": "Member"}], "categories": {"CHAT": [{"name": "general"}]}}
INVALID = {"roles": [], "categories": {}}


class ScriptedGateway:
    """Replays canned replies; an exception instance in the script is raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    async def generate(self, messages, *, model=None, max_tokens=None):
        self.requests.append(messages)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class TestGenerateValidatedBlueprint:

    @pytest.mark.asyncio
    async def test_valid_on_first_try(self):
        gateway = ScriptedGateway(json.dumps(VALID))
        assert await generate_validated_blueprint(gateway, ["a gaming server"]) == VALID
        assert len(gateway.requests) == 1

    @pytest.mark.asyncio
    async def test_fenced_reply_is_healed(self):
        gateway = ScriptedGateway("Sure!\n```json\n" + json.dumps(VALID) + "\n```")
        assert await generate_validated_blueprint(gateway, ["x"]) == VALID

    @pytest.mark.asyncio
    async def test_invalid_then_repaired(self):
        gateway = ScriptedGateway(json.dumps(INVALID), json.dumps(VALID))
        assert await generate_validated_blueprint(gateway, ["x"]) == VALID

        repair = gateway.requests[1]
        assert repair[0]["role"] == "system"
        assert repair[0]["content"].startswith("The JSON you produced did not match the required schema.")
        assert json.loads(repair[1]["content"]) == INVALID

    @pytest.mark.asyncio
    async def test_garbage_then_valid(self):
        notifier = FakeNotifier()
        gateway = ScriptedGateway("I cannot do that", json.dumps(VALID))

        assert await generate_validated_blueprint(gateway, ["x"], notifier=notifier) == VALID
        assert notifier.messages == [
            "⚠️ AI returned empty or invalid JSON. Retrying...",
            "🔁 Attempt 2 fixing blueprint...",
        ]

    @pytest.mark.asyncio
    async def test_always_invalid_raises_with_issues(self):
        """Three attempts, each with one repair round-trip."""
        gateway = ScriptedGateway(json.dumps(INVALID))

        with pytest.raises(GenerationError) as excinfo:
            await generate_validated_blueprint(gateway, ["x"], max_attempts=3)

        assert len(gateway.requests) == 6
        assert excinfo.value.issues
        assert "after 3 attempts" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_gateway_errors_count_as_attempts(self):
        notifier = FakeNotifier()
        gateway = ScriptedGateway(AIGatewayError("down"))

        with pytest.raises(GenerationError):
            await generate_validated_blueprint(gateway, ["x"], notifier=notifier, max_attempts=2)

        assert len(gateway.requests) == 2
        assert notifier.messages.count("⚠️ AI request failed. Retrying...") == 2

    @pytest.mark.asyncio
    async def test_gateway_recovers(self):
        gateway = ScriptedGateway(AIGatewayError("down"), json.dumps(VALID))
        assert await generate_validated_blueprint(gateway, ["x"]) == VALID


class TestPrompt:

    def test_message_structure(self):
        messages = build_generation_messages(["gaming", "neon-gold", "INFO, CHAT"])
        assert [m["role"] for m in messages] == ["system", "system", "user"]
        assert "Return ONLY JSON" in messages[0]["content"]
        assert "Invalid example (do NOT emulate)" in messages[1]["content"]
        assert messages[2]["content"] == "gaming\nneon-gold\nINFO, CHAT"

    @pytest.mark.parametrize("example", list(FEW_SHOT_VALID) + [CORRECTED_EXAMPLE])
    def test_examples_validate(self, example):
        assert validate_blueprint(example).valid
