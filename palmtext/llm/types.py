"""
Type definitions for the PaLM text client.

Holds the immutable value objects shared by every operation (connection
context, sampling parameters, interpreted outcomes) and the exception
hierarchy.
"""

from enum import Enum
from typing import Any, FrozenSet, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


# ============================================================
# Exceptions
# ============================================================


class PalmError(Exception):
    """Base exception for palmtext errors."""
    pass


class PalmRequestError(PalmError, ValueError):
    """A request could not be built from the given arguments."""
    pass


class InvalidSelectionError(PalmRequestError):
    """Enumerated parameter outside its allow-list."""
    pass


class InvalidInputError(PalmRequestError):
    """Text input empty or longer than the API accepts."""
    pass


class OutOfRangeError(PalmRequestError):
    """Numeric parameter outside its documented bounds."""
    pass


class PalmTimeoutError(PalmError):
    """Request to the generation API timed out."""
    pass


class PalmConnectionError(PalmError):
    """Network/connection error reaching the generation API."""
    pass


class PalmResponseError(PalmError):
    """The API answered with a body that is not JSON."""
    pass


class PalmRemoteError(PalmError):
    """The API rejected the connection probe (bad key, unknown model...)."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


# ============================================================
# Connection Context
# ============================================================


class ModelVersion(str, Enum):
    """API versions serving text-bison."""
    V1BETA2 = "v1beta2"
    V1BETA3 = "v1beta3"


class ModelType(str, Enum):
    """Supported text models."""
    TEXT_BISON_001 = "text-bison-001"


class ConnectionContext(BaseModel):
    """Credentials and model selection used by every request."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    api_key: str = Field(..., min_length=1, repr=False, description="Generative Language API key")
    model_version: ModelVersion = Field(..., description="API version segment of the endpoint")
    model_type: ModelType = Field(default=ModelType.TEXT_BISON_001, description="Model identifier")
    use_proxy: bool = Field(default=False, description="Route requests through the proxy host")


def _allowed(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


def build_connection(
    api_key: str,
    model_version: Union[str, ModelVersion],
    model_type: Union[str, ModelType] = ModelType.TEXT_BISON_001,
    use_proxy: bool = False,
) -> ConnectionContext:
    """
    Validate a model selection and package it with the API key.

    The key itself is only checked for presence; the API decides whether it
    is valid (see PalmTextClient.check_connection).

    Args:
        api_key: Generative Language API key
        model_version: "v1beta2" or "v1beta3"
        model_type: "text-bison-001"
        use_proxy: Send requests to the proxy host instead of Google's

    Returns:
        ConnectionContext: Immutable context reusable across any number of calls

    Raises:
        InvalidSelectionError: Version or type outside the supported set
        InvalidInputError: Missing API key
    """
    if not isinstance(api_key, str) or not api_key.strip():
        raise InvalidInputError("API key is required")

    try:
        version = ModelVersion(model_version)
    except ValueError:
        raise InvalidSelectionError(
            f"Unsupported model version '{model_version}'. "
            f"Supported versions: {_allowed(ModelVersion)}"
        ) from None

    try:
        model = ModelType(model_type)
    except ValueError:
        raise InvalidSelectionError(
            f"Unsupported model type '{model_type}'. "
            f"Supported types: {_allowed(ModelType)}"
        ) from None

    return ConnectionContext(
        api_key=api_key,
        model_version=version,
        model_type=model,
        use_proxy=bool(use_proxy),
    )


# ============================================================
# Generation Config
# ============================================================


class GenerationConfig(BaseModel):
    """Sampling parameters sent with every generateText request."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    temperature: float = Field(default=0.7, ge=0.0, le=1.0, strict=True, description="Sampling temperature")
    max_output_tokens: int = Field(
        default=1024, ge=1, le=1024, strict=True, alias="maxOutputTokens",
        description="Maximum tokens in the candidate",
    )
    top_p: float = Field(
        default=0.95, ge=0.0, le=1.0, strict=True, alias="topP",
        description="Maximum cumulative probability of tokens considered",
    )
    top_k: int = Field(
        default=40, ge=1, le=1_000_000, strict=True, alias="topK",
        description="Maximum number of tokens considered",
    )

    def to_payload(self) -> dict:
        """Wire representation (camelCase keys)."""
        return self.model_dump(by_alias=True)


def build_generation_config(
    config: Union[GenerationConfig, Mapping[str, Any], None] = None,
) -> GenerationConfig:
    """
    Resolve caller-supplied sampling parameters.

    Args:
        config: A GenerationConfig, a mapping of field names (snake_case or
            camelCase) to values, or None for defaults

    Returns:
        GenerationConfig

    Raises:
        OutOfRangeError: A parameter is outside its bounds or not a number
            (bools and numeric strings are rejected)
        InvalidSelectionError: Unknown parameter name
    """
    if config is None:
        return GenerationConfig()
    if isinstance(config, GenerationConfig):
        return config

    try:
        return GenerationConfig(**dict(config))
    except ValidationError as e:
        errors = e.errors()
        unknown = [str(err["loc"][-1]) for err in errors if err["type"] == "extra_forbidden"]
        if unknown:
            raise InvalidSelectionError(
                f"Unknown generation parameter(s): {', '.join(unknown)}"
            ) from e
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in errors
        )
        raise OutOfRangeError(f"Generation parameter out of range: {details}") from e


# ============================================================
# Operation Outcomes
# ============================================================


class _Outcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return False


class Success(_Outcome):
    """The API produced a candidate."""

    outcome: Literal["success"] = "success"
    text: str

    @property
    def ok(self) -> bool:
        return True


class RemoteError(_Outcome):
    """The API answered with an error object."""

    outcome: Literal["remote_error"] = "remote_error"
    message: str
    code: Optional[int] = None
    status: Optional[str] = None


class SafetyWarning(_Outcome):
    """
    The API withheld output and returned safety feedback.

    Attributes:
        categories: Harm categories rated MEDIUM or HIGH
        below_threshold: True when feedback was present but every rating was
            below MEDIUM (categories is then empty)
    """

    outcome: Literal["safety_warning"] = "safety_warning"
    categories: FrozenSet[str] = frozenset()
    below_threshold: bool = False


class UnknownResponse(_Outcome):
    """The response matched none of the recognized shapes."""

    outcome: Literal["unknown_response"] = "unknown_response"
    keys: Tuple[str, ...] = ()


OperationOutcome = Union[Success, RemoteError, SafetyWarning, UnknownResponse]
