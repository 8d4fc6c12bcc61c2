"""Inference-service contract, prompt modes and the pydantic-ai adapter.

The resolution engine only sees InferenceService: a request naming a
mode and a prompt key, answered by ``{success, data}`` where data is
free-form text. Modes (system prompts, user templates, sampling
settings) come from configuration.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

from pydantic import BaseModel, Field
from pydantic_ai import Agent, UnexpectedModelBehavior
from pydantic_ai.models import Model, infer_model
from pydantic_ai.providers import infer_provider_class

from rebasekit.core.config import LLMConfig
from rebasekit.core.log import logger

RESOLVER_MODE = "merge_conflict_resolver"

EMPTY_RESPONSE = "Empty response"
UNUSABLE_RESPONSE = "Unusable model response"


class ModeRequest(BaseModel):
    """One call to the inference service."""

    mode_id: str
    prompt_key: str
    variables: dict[str, str] = Field(default_factory=dict)
    user_message: str | None = None


class ModeResponse(BaseModel):
    """Answer from the inference service; data is free-form text."""

    success: bool
    data: str = ""
    error: str | None = None


class InferenceService(Protocol):
    async def send_with_mode(self, request: ModeRequest) -> ModeResponse:
        ...


class ModeSettings(BaseModel):
    temperature: float = 0.5
    max_tokens: int = 4096
    model: str | None = Field(
        default=None,
        description="Model override for this mode ('provider:model')",
    )


class ModeConfig(BaseModel):
    """A named operating mode: sampling settings plus prompts.

    ``prompts`` maps prompt keys to either a bare system string or a
    ``{system, user_template}`` mapping; nested groups such as
    ``system.base`` are addressed with dots.
    """

    name: str = ""
    description: str = ""
    settings: ModeSettings = Field(default_factory=ModeSettings)
    prompts: dict[str, Any] = Field(default_factory=dict)


def format_prompt(template: str, variables: dict[str, str]) -> str:
    """Replace ``{name}`` placeholders by literal substitution.

    str.format is unusable here: conflicted source code is full of
    braces.
    """
    result = template
    for key, value in variables.items():
        result = result.replace("{" + key + "}", value)
    return result


class ModeRegistry:
    """Lookup of configured modes and prompt assembly."""

    def __init__(self, modes: dict[str, Any]):
        self.modes = {
            mode_id: ModeConfig.model_validate(raw)
            for mode_id, raw in modes.items()
        }

    def get_mode(self, mode_id: str) -> ModeConfig:
        try:
            return self.modes[mode_id]
        except KeyError:
            raise ValueError(f"Mode not found: {mode_id}") from None

    @staticmethod
    def _lookup(prompts: dict[str, Any], key: str) -> Any:
        node: Any = prompts
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def build_messages(
        self, mode: ModeConfig, request: ModeRequest
    ) -> tuple[str | None, str]:
        """Render (system prompt, user prompt) for a request."""
        variables = dict(request.variables)
        base = self._lookup(mode.prompts, "system.base")
        if isinstance(base, str):
            variables["base_system"] = format_prompt(base, variables)

        prompt = self._lookup(mode.prompts, request.prompt_key)
        user_message = request.user_message or ""
        system = None

        if isinstance(prompt, dict):
            if prompt.get("system"):
                system = format_prompt(prompt["system"], variables)
            if prompt.get("user_template") and request.user_message:
                variables["user_message"] = request.user_message
                user_message = format_prompt(
                    prompt["user_template"], variables
                )
        elif isinstance(prompt, str):
            system = format_prompt(prompt, variables)

        return system, user_message


def build_model(model_name: str, llm_config: LLMConfig) -> Model:
    """Resolve a 'provider:model' string into a pydantic-ai model.

    Configured api_key/base_url are forwarded to the provider; without
    them the provider reads its own environment variables.
    """
    kwargs = {}
    if llm_config.api_key:
        kwargs["api_key"] = llm_config.api_key
    if llm_config.base_url:
        kwargs["base_url"] = llm_config.base_url

    if not kwargs:
        return infer_model(model_name)

    def provider_factory(provider_name: str):
        return infer_provider_class(provider_name)(**kwargs)

    return infer_model(model_name, provider_factory=provider_factory)


class PydanticAIInferenceService:
    """InferenceService backed by a pydantic-ai Agent per call.

    Failures (provider errors, timeouts, unknown modes) come back as
    ``success=False`` responses, never as exceptions.
    """

    def __init__(
        self,
        llm_config: LLMConfig,
        registry: ModeRegistry,
        timeout: float | None = 60,
        model: Any = None,
    ):
        """
        Args:
            llm_config: Default model and credentials
            registry: Configured modes
            timeout: Seconds allowed per call
            model: Prebuilt pydantic-ai model overriding configuration
        """
        self.llm_config = llm_config
        self.registry = registry
        self.timeout = timeout
        self.model = model

    def _create_agent(self, mode: ModeConfig, system: str | None) -> Agent:
        model = self.model
        if model is None:
            model = build_model(
                mode.settings.model or self.llm_config.model, self.llm_config
            )
        return Agent(
            model,
            output_type=str,
            system_prompt=system or (),
        )

    async def send_with_mode(self, request: ModeRequest) -> ModeResponse:
        logger.debug(
            f"Inference request {request.mode_id}/{request.prompt_key}",
            file=request.variables.get("file_path"),
        )
        try:
            mode = self.registry.get_mode(request.mode_id)
            system, user_message = self.registry.build_messages(
                mode, request
            )
            agent = self._create_agent(mode, system)
            result = await asyncio.wait_for(
                agent.run(
                    user_message,
                    model_settings={
                        "temperature": mode.settings.temperature,
                        "max_tokens": mode.settings.max_tokens,
                    },
                ),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.warn(
                f"Inference call timed out after {self.timeout}s",
                prompt_key=request.prompt_key,
            )
            return ModeResponse(
                success=False,
                error=f"Inference timed out after {self.timeout}s",
            )
        except UnexpectedModelBehavior as e:
            # Includes output pydantic-ai itself rejects, such as empty text
            logger.warn(
                f"Unusable model response: {e.message}",
                prompt_key=request.prompt_key,
            )
            return ModeResponse(
                success=False,
                error=f"{UNUSABLE_RESPONSE}: {e.message}",
            )
        except Exception as e:
            logger.error(
                f"Inference call failed: {e}",
                prompt_key=request.prompt_key,
                _exc_info=e,
            )
            return ModeResponse(success=False, error=str(e))

        output = result.output or ""
        logger.debug(
            f"Inference response: {len(output)} chars",
            prompt_key=request.prompt_key,
            messages=len(result.all_messages()),
        )
        if not output.strip():
            return ModeResponse(success=False, error=EMPTY_RESPONSE)
        return ModeResponse(success=True, data=output)
