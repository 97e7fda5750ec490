"""
Request composition for the generateText endpoint.

compose() turns an operation and its parameters into the prompt, endpoint URL
and JSON body for one call. Every validation error surfaces here, before any
network I/O.
"""

from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from palmtext.config.logging_config import get_logger, redact_url
from palmtext.llm.prompts import (
    PARAMS_BY_OPERATION,
    Operation,
    OperationParams,
    resolve_operation,
)
from palmtext.llm.safety import (
    CategoryKey,
    SafetyThresholds,
    ThresholdValue,
    build_safety_thresholds,
)
from palmtext.llm.types import (
    ConnectionContext,
    GenerationConfig,
    build_generation_config,
)

logger = get_logger(__name__)

DIRECT_HOST = "https://generativelanguage.googleapis.com"
PROXY_HOST = "https://api.genai.gd.edu.kg/google"


class OperationRequest(BaseModel):
    """A fully composed generateText call."""

    model_config = ConfigDict(frozen=True)

    operation: Operation
    prompt: str
    url: str = Field(..., repr=False, description="Endpoint URL including the API key")
    safety: SafetyThresholds
    generation: GenerationConfig

    @property
    def payload(self) -> Dict[str, Any]:
        """JSON body for the POST."""
        return {
            "prompt": {"text": self.prompt},
            "safetySettings": self.safety.to_settings(),
            **self.generation.to_payload(),
        }


def model_url(connection: ConnectionContext) -> str:
    """URL of the model resource itself (used for the connection probe)."""
    host = PROXY_HOST if connection.use_proxy else DIRECT_HOST
    return (
        f"{host}/{connection.model_version.value}"
        f"/models/{connection.model_type.value}?key={connection.api_key}"
    )


def endpoint_url(connection: ConnectionContext) -> str:
    """URL of the generateText method for this connection."""
    host = PROXY_HOST if connection.use_proxy else DIRECT_HOST
    return (
        f"{host}/{connection.model_version.value}"
        f"/models/{connection.model_type.value}:generateText?key={connection.api_key}"
    )


def compose(
    operation: Union[str, Operation],
    params: OperationParams,
    connection: ConnectionContext,
    generation_config: Union[GenerationConfig, Mapping[str, Any], None] = None,
    safety_overrides: Optional[Mapping[CategoryKey, ThresholdValue]] = None,
) -> OperationRequest:
    """
    Build the request for one operation.

    Args:
        operation: Operation kind (enum member or its string value)
        params: The params struct matching the operation
        connection: Context from build_connection()
        generation_config: GenerationConfig, mapping of overrides, or None
        safety_overrides: Category → threshold code for non-default categories

    Returns:
        OperationRequest: prompt, URL and payload ready for the transport

    Raises:
        InvalidInputError: Text empty or longer than 8196 characters
        InvalidSelectionError: Unknown operation, enumerated value or safety code
        OutOfRangeError: Sampling parameter or source count out of bounds
        TypeError: params struct does not belong to the operation
    """
    operation = resolve_operation(operation)

    expected = PARAMS_BY_OPERATION[operation]
    if not isinstance(params, expected):
        raise TypeError(
            f"Operation '{operation.value}' expects {expected.__name__}, "
            f"got {type(params).__name__}"
        )

    prompt = params.render()
    generation = build_generation_config(generation_config)
    safety = build_safety_thresholds(safety_overrides)
    url = endpoint_url(connection)

    logger.debug(
        f"📝 Composed {operation.value} request ({len(prompt)} chars) for {redact_url(url)}"
    )
    logger.trace("📝 Prompt: %s", prompt)

    return OperationRequest(
        operation=operation,
        prompt=prompt,
        url=url,
        safety=safety,
        generation=generation,
    )
