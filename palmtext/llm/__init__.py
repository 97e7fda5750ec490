"""
PaLM generateText layer.

Builds validated requests (connection context, prompt templates, safety block,
sampling parameters), sends them over HTTP and classifies the responses.
"""

from palmtext.llm.types import (
    ConnectionContext,
    GenerationConfig,
    ModelType,
    ModelVersion,
    OperationOutcome,
    RemoteError,
    SafetyWarning,
    Success,
    UnknownResponse,
    PalmError,
    PalmRequestError,
    InvalidSelectionError,
    InvalidInputError,
    OutOfRangeError,
    PalmTimeoutError,
    PalmConnectionError,
    PalmResponseError,
    PalmRemoteError,
    build_connection,
    build_generation_config,
)
from palmtext.llm.safety import (
    HarmBlockThreshold,
    HarmCategory,
    SafetyThresholds,
    build_safety_thresholds,
)
from palmtext.llm.prompts import (
    ExplainCodeParams,
    FixGrammarParams,
    GenerateParams,
    GetReferenceParams,
    Operation,
    OptimizationAspect,
    OptimizeCodeParams,
    SourceType,
)
from palmtext.llm.composer import OperationRequest, compose, endpoint_url
from palmtext.llm.interpreter import interpret
from palmtext.llm.client import PalmTextClient

__all__ = [
    "ConnectionContext",
    "GenerationConfig",
    "ModelType",
    "ModelVersion",
    "OperationOutcome",
    "RemoteError",
    "SafetyWarning",
    "Success",
    "UnknownResponse",
    "PalmError",
    "PalmRequestError",
    "InvalidSelectionError",
    "InvalidInputError",
    "OutOfRangeError",
    "PalmTimeoutError",
    "PalmConnectionError",
    "PalmResponseError",
    "PalmRemoteError",
    "build_connection",
    "build_generation_config",
    "HarmBlockThreshold",
    "HarmCategory",
    "SafetyThresholds",
    "build_safety_thresholds",
    "ExplainCodeParams",
    "FixGrammarParams",
    "GenerateParams",
    "GetReferenceParams",
    "Operation",
    "OptimizationAspect",
    "OptimizeCodeParams",
    "SourceType",
    "OperationRequest",
    "compose",
    "endpoint_url",
    "interpret",
    "PalmTextClient",
]
