"""
Operation parameter structs and their prompt templates.

Each operation validates its own parameters and renders them into the single
natural-language prompt sent to generateText.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from palmtext.llm.types import (
    InvalidInputError,
    InvalidSelectionError,
    OutOfRangeError,
)

# Accepted prompt/code length (characters, inclusive)
MIN_TEXT_LENGTH = 1
MAX_TEXT_LENGTH = 8196

CODE_START = "# Code starts #"
CODE_END = "# Code ends #"


class Operation(str, Enum):
    """Supported request kinds."""
    GENERATE = "generate"
    FIX_GRAMMAR = "fix-grammar"
    GET_REFERENCE = "get-reference"
    EXPLAIN_CODE = "explain-code"
    OPTIMIZE_CODE = "optimize-code"


class SourceType(str, Enum):
    ARTICLES = "articles"
    WEBSITES = "websites"


class OptimizationAspect(str, Enum):
    GENERAL = "general"
    RUNTIME = "runtime"
    MEMORY = "memory"
    RUNTIME_AND_MEMORY = "runtime&memory"


def resolve_operation(operation: Union[str, Operation]) -> Operation:
    try:
        return Operation(operation)
    except ValueError:
        raise InvalidSelectionError(
            f"Unknown operation '{operation}'. "
            f"Supported operations: {', '.join(op.value for op in Operation)}"
        ) from None


def check_text(value: str, field: str) -> str:
    """Length check shared by every free-text parameter."""
    if not isinstance(value, str):
        raise InvalidInputError(f"{field} must be a string, got {type(value).__name__}")
    if not MIN_TEXT_LENGTH <= len(value) <= MAX_TEXT_LENGTH:
        raise InvalidInputError(
            f"{field} must be between {MIN_TEXT_LENGTH} and {MAX_TEXT_LENGTH} "
            f"characters (got {len(value)})"
        )
    return value


def _check_label(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field} must be a non-empty string")
    return value.strip()


def _choose(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidSelectionError(
            f"Unsupported {field} '{value}'. "
            f"Valid options: {', '.join(member.value for member in enum_cls)}"
        ) from None


def _code_block(code: str) -> str:
    return f"{CODE_START}\n{code}\n{CODE_END}\n"


@dataclass(frozen=True)
class GenerateParams:
    """Free-form prompt, sent as-is."""

    prompt: str

    def render(self) -> str:
        return check_text(self.prompt, "prompt")


@dataclass(frozen=True)
class FixGrammarParams:
    text: str

    def render(self) -> str:
        text = check_text(self.text, "text")
        return f"Correct the grammar of: {text}"


@dataclass(frozen=True)
class GetReferenceParams:
    """
    Reference lookup.

    source_date is free text ("most recent", "2019", "2015-2020"...), and so is
    citation_style ("APA", "APA7", "MLA"...).
    """

    topic: str
    source_type: Union[str, SourceType] = SourceType.ARTICLES
    source_date: str = "most recent"
    num_sources: int = 5
    citation_style: str = "APA"

    def render(self) -> str:
        topic = check_text(self.topic, "topic")
        source_type = _choose(SourceType, self.source_type, "source type")
        source_date = _check_label(self.source_date, "source date")
        citation_style = _check_label(self.citation_style, "citation style")

        if isinstance(self.num_sources, bool) or not isinstance(self.num_sources, int):
            raise OutOfRangeError(f"num_sources must be an integer, got {self.num_sources!r}")
        if self.num_sources < 1:
            raise OutOfRangeError(f"num_sources must be at least 1 (got {self.num_sources})")

        return (
            f"Find {self.num_sources} {source_date} source(s) from real and accessible "
            f"{source_type.value}. The source(s) must be related to {topic}. "
            f"Present the reference list in the citation style of {citation_style}."
        )


@dataclass(frozen=True)
class ExplainCodeParams:
    code: str
    language: str

    def render(self) -> str:
        code = check_text(self.code, "code")
        language = _check_label(self.language, "language")
        return f"Explain the following {language} code:\n" + _code_block(code)


@dataclass(frozen=True)
class OptimizeCodeParams:
    """
    Code optimization.

    Either one of the fixed aspects, or a free-form goal ("Improve the
    runtime.") which takes precedence over aspect when given.
    """

    code: str
    language: str
    aspect: Union[str, OptimizationAspect] = OptimizationAspect.GENERAL
    goal: Optional[str] = None

    def render(self) -> str:
        code = check_text(self.code, "code")
        language = _check_label(self.language, "language")
        aspect = _choose(OptimizationAspect, self.aspect, "optimization aspect")

        if self.goal is not None:
            goal = check_text(self.goal, "goal")
            return (
                f"Optimize the following {language} code.\n"
                f"The goal is: {goal}\n" + _code_block(code)
            )

        return f"Optimize the following {language} code for {aspect.value}:\n" + _code_block(code)


OperationParams = Union[
    GenerateParams,
    FixGrammarParams,
    GetReferenceParams,
    ExplainCodeParams,
    OptimizeCodeParams,
]

PARAMS_BY_OPERATION = {
    Operation.GENERATE: GenerateParams,
    Operation.FIX_GRAMMAR: FixGrammarParams,
    Operation.GET_REFERENCE: GetReferenceParams,
    Operation.EXPLAIN_CODE: ExplainCodeParams,
    Operation.OPTIMIZE_CODE: OptimizeCodeParams,
}
