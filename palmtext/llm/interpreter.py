"""
Classification of generateText responses.

A response may carry candidates, an error object and safety feedback at the
same time. interpret() applies a fixed priority order:

1. candidates[0].output present and non-null  -> Success
2. top-level "error"                           -> RemoteError
3. "safetyFeedback" present                    -> SafetyWarning
   (categories rated MEDIUM/HIGH, or below_threshold=True when none are)
4. anything else                               -> UnknownResponse
"""

from typing import Any, List, Mapping

from palmtext.config.logging_config import get_logger
from palmtext.llm.safety import HarmCategory
from palmtext.llm.types import (
    OperationOutcome,
    RemoteError,
    SafetyWarning,
    Success,
    UnknownResponse,
)

logger = get_logger(__name__)

RISKY_PROBABILITIES = frozenset({"MEDIUM", "HIGH"})


def _candidate_output(response: Mapping[str, Any]):
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, Mapping):
        return None
    return first.get("output")


def _remote_error(error: Any) -> RemoteError:
    if not isinstance(error, Mapping):
        return RemoteError(message=str(error))

    code = error.get("code")
    status = error.get("status")
    return RemoteError(
        message=str(error.get("message") or status or "Unknown API error"),
        code=code if isinstance(code, int) else None,
        status=status if isinstance(status, str) else None,
    )


def _risky_categories(feedback: Any) -> List[str]:
    entries = feedback if isinstance(feedback, list) else [feedback]
    categories = []
    for entry in entries:
        rating = entry.get("rating") if isinstance(entry, Mapping) else None
        if not isinstance(rating, Mapping):
            continue
        if rating.get("probability") in RISKY_PROBABILITIES:
            categories.append(str(rating.get("category") or HarmCategory.UNSPECIFIED.value))
    return categories


def interpret(response: Any) -> OperationOutcome:
    """
    Classify a parsed generateText response.

    Args:
        response: Parsed JSON body

    Returns:
        OperationOutcome: Success, RemoteError, SafetyWarning or UnknownResponse
    """
    if not isinstance(response, Mapping):
        logger.warning(f"⚠️ Response is not a JSON object ({type(response).__name__})")
        return UnknownResponse()

    logger.trace("🔍 Raw response: %s", response)

    output = _candidate_output(response)
    if output is not None:
        text = str(output)
        logger.debug(f"✅ Candidate received ({len(text)} chars)")
        return Success(text=text)

    if response.get("error") is not None:
        outcome = _remote_error(response["error"])
        logger.warning(f"⚠️ API error: {outcome.message}")
        return outcome

    if "safetyFeedback" in response and response["safetyFeedback"] is not None:
        categories = _risky_categories(response["safetyFeedback"])
        if categories:
            logger.warning(f"⚠️ Prompt violates safety setting(s): {', '.join(categories)}")
            return SafetyWarning(categories=frozenset(categories))

        logger.warning("⚠️ Safe inquiry, but the response carries safety feedback")
        return SafetyWarning(below_threshold=True)

    logger.warning(f"⚠️ Unrecognized response shape (keys: {sorted(response)})")
    return UnknownResponse(keys=tuple(sorted(str(key) for key in response)))
