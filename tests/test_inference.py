"""Tests for prompt modes and the pydantic-ai inference adapter."""

import asyncio

import pytest
from pydantic_ai import UnexpectedModelBehavior
from pydantic_ai.messages import (
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models.function import AgentInfo, FunctionModel

from rebasekit.core.config import LLMConfig
from rebasekit.model.inference import (
    EMPTY_RESPONSE,
    RESOLVER_MODE,
    UNUSABLE_RESPONSE,
    ModeRegistry,
    ModeRequest,
    PydanticAIInferenceService,
    format_prompt,
)

MODES = {
    "resolver": {
        "name": "Resolver",
        "settings": {"temperature": 0.1, "max_tokens": 1000},
        "prompts": {
            "system": {"base": "You speak {language}."},
            "resolve": {
                "system": "{base_system} Merge {current_branch}.",
                "user_template": "{user_message}\n--- {file_path} ---",
            },
            "plain": "Just a system prompt for {file_path}.",
        },
    },
}


def request(prompt_key="resolve", user_message="Please merge"):
    return ModeRequest(
        mode_id="resolver",
        prompt_key=prompt_key,
        variables={
            "language": "Python",
            "current_branch": "feature",
            "file_path": "a.py",
        },
        user_message=user_message,
    )


class Recorder:
    """FunctionModel body that records what the agent sent."""

    def __init__(self, reply="merged"):
        self.reply = reply
        self.system: list[str] = []
        self.user: list[str] = []
        self.settings = None

    def __call__(self, messages, info: AgentInfo) -> ModelResponse:
        for part in messages[0].parts:
            if isinstance(part, SystemPromptPart):
                self.system.append(part.content)
            elif isinstance(part, UserPromptPart):
                self.user.append(part.content)
        self.settings = info.model_settings
        return ModelResponse(parts=[TextPart(self.reply)])


def service(recorder, timeout=5):
    return PydanticAIInferenceService(
        LLMConfig(model="test:unused"),
        ModeRegistry(MODES),
        timeout=timeout,
        model=FunctionModel(recorder, model_name="recorder"),
    )


def test_format_prompt_leaves_code_braces_alone():
    template = "File {file_path}:\n{content}"
    code = "fn main() { let x = {}; }"

    result = format_prompt(template, {"file_path": "a.rs", "content": code})

    assert result == "File a.rs:\nfn main() { let x = {}; }"


def test_format_prompt_keeps_unknown_placeholders():
    assert format_prompt("{known} {unknown}", {"known": "x"}) == (
        "x {unknown}"
    )


def test_build_messages_renders_base_system_and_template():
    registry = ModeRegistry(MODES)
    mode = registry.get_mode("resolver")

    system, user = registry.build_messages(mode, request())

    assert system == "You speak Python. Merge feature."
    assert user == "Please merge\n--- a.py ---"


def test_build_messages_plain_string_prompt():
    registry = ModeRegistry(MODES)
    mode = registry.get_mode("resolver")

    system, user = registry.build_messages(mode, request("plain"))

    assert system == "Just a system prompt for a.py."
    assert user == "Please merge"


def test_unknown_mode_raises():
    with pytest.raises(ValueError, match="Mode not found"):
        ModeRegistry(MODES).get_mode("missing")


def test_send_with_mode_success():
    recorder = Recorder("merged")

    response = asyncio.run(service(recorder).send_with_mode(request()))

    assert response.success
    assert response.data == "merged"
    assert recorder.system == ["You speak Python. Merge feature."]
    assert recorder.user == ["Please merge\n--- a.py ---"]
    assert recorder.settings["temperature"] == 0.1
    assert recorder.settings["max_tokens"] == 1000


def test_send_with_mode_unknown_mode_is_failure():
    bad = ModeRequest(mode_id="missing", prompt_key="resolve",
                      user_message="hi")

    response = asyncio.run(service(Recorder()).send_with_mode(bad))

    assert not response.success
    assert "Mode not found" in response.error


@pytest.mark.parametrize("reply", ["", "  \n"])
def test_send_with_mode_blank_output_is_failure(reply):
    response = asyncio.run(
        service(Recorder(reply)).send_with_mode(request())
    )

    assert not response.success
    # pydantic-ai may reject blank text before the adapter sees it
    assert response.error == EMPTY_RESPONSE or response.error.startswith(
        UNUSABLE_RESPONSE
    )
    assert response.data == ""


def test_send_with_mode_unexpected_model_behavior_is_failure():
    def misbehaving(messages, info):
        raise UnexpectedModelBehavior("garbled reply")

    inference = PydanticAIInferenceService(
        LLMConfig(model="test:unused"),
        ModeRegistry(MODES),
        model=FunctionModel(misbehaving, model_name="misbehaving"),
    )

    response = asyncio.run(inference.send_with_mode(request()))

    assert not response.success
    assert response.error == f"{UNUSABLE_RESPONSE}: garbled reply"


def test_send_with_mode_provider_error_is_failure():
    def broken(messages, info):
        raise RuntimeError("provider unavailable")

    inference = PydanticAIInferenceService(
        LLMConfig(model="test:unused"),
        ModeRegistry(MODES),
        model=FunctionModel(broken, model_name="broken"),
    )

    response = asyncio.run(inference.send_with_mode(request()))

    assert not response.success
    assert "provider unavailable" in response.error


def test_send_with_mode_timeout_is_failure():
    async def slow(messages, info):
        await asyncio.sleep(1)
        return ModelResponse(parts=[TextPart("late")])

    inference = PydanticAIInferenceService(
        LLMConfig(model="test:unused"),
        ModeRegistry(MODES),
        timeout=0.01,
        model=FunctionModel(slow, model_name="slow"),
    )

    response = asyncio.run(inference.send_with_mode(request()))

    assert not response.success
    assert "timed out" in response.error


def test_default_modes_define_resolver_prompts(test_config):
    registry = ModeRegistry(test_config.modes)
    mode = registry.get_mode(RESOLVER_MODE)

    system, user = registry.build_messages(mode, ModeRequest(
        mode_id=RESOLVER_MODE,
        prompt_key="resolve_conflict",
        variables={
            "file_path": "a.py",
            "language": "Python",
            "current_branch": "feature",
            "incoming_branch": "main",
            "conflicted_content": "<<<<<<< HEAD\n=======\n>>>>>>> x\n",
        },
        user_message="Resolve it",
    ))

    assert "feature" in system
    assert "main" in system
    assert "a.py" in user
    assert "{file_path}" not in user
