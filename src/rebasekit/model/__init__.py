"""Inference service adapter and conflict resolution client."""

from rebasekit.model.inference import (
    RESOLVER_MODE,
    InferenceService,
    ModeRegistry,
    ModeRequest,
    ModeResponse,
    PydanticAIInferenceService,
)
from rebasekit.model.resolver import ResolutionClient

__all__ = [
    "RESOLVER_MODE",
    "InferenceService",
    "ModeRegistry",
    "ModeRequest",
    "ModeResponse",
    "PydanticAIInferenceService",
    "ResolutionClient",
]
