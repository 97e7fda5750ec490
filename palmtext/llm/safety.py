"""
Safety settings block for generateText requests.

Every request carries a threshold for each of the seven harm categories the
text model scores. Callers override individual categories; the rest default
to BLOCK_MEDIUM_AND_ABOVE.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from palmtext.config.logging_config import get_logger
from palmtext.llm.types import InvalidSelectionError

logger = get_logger(__name__)


class HarmCategory(str, Enum):
    """Harm categories, in the order they are sent."""
    UNSPECIFIED = "HARM_CATEGORY_UNSPECIFIED"
    DEROGATORY = "HARM_CATEGORY_DEROGATORY"
    TOXICITY = "HARM_CATEGORY_TOXICITY"
    VIOLENCE = "HARM_CATEGORY_VIOLENCE"
    SEXUAL = "HARM_CATEGORY_SEXUAL"
    MEDICAL = "HARM_CATEGORY_MEDICAL"
    DANGEROUS = "HARM_CATEGORY_DANGEROUS"


class HarmBlockThreshold(str, Enum):
    """Block levels accepted for a harm category."""
    UNSPECIFIED = "HARM_BLOCK_THRESHOLD_UNSPECIFIED"
    BLOCK_LOW_AND_ABOVE = "BLOCK_LOW_AND_ABOVE"
    BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"
    BLOCK_ONLY_HIGH = "BLOCK_ONLY_HIGH"
    BLOCK_NONE = "BLOCK_NONE"


# Four-letter shorthand codes
THRESHOLD_CODES: Dict[str, HarmBlockThreshold] = {
    "unsp": HarmBlockThreshold.UNSPECIFIED,
    "lowa": HarmBlockThreshold.BLOCK_LOW_AND_ABOVE,
    "meda": HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    "high": HarmBlockThreshold.BLOCK_ONLY_HIGH,
    "none": HarmBlockThreshold.BLOCK_NONE,
}

DEFAULT_THRESHOLD = HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE

CategoryKey = Union[str, HarmCategory]
ThresholdValue = Union[str, HarmBlockThreshold]


class SafetyThresholds(BaseModel):
    """Resolved threshold for every harm category."""

    model_config = ConfigDict(frozen=True)

    levels: Dict[HarmCategory, HarmBlockThreshold]

    def __getitem__(self, category: CategoryKey) -> HarmBlockThreshold:
        return self.levels[resolve_category(category)]

    def to_settings(self) -> List[Dict[str, str]]:
        """Ordered list of category/threshold pairs for the request body."""
        return [
            {"category": category.value, "threshold": self.levels[category].value}
            for category in HarmCategory
        ]


def resolve_category(key: CategoryKey) -> HarmCategory:
    """
    Map "violence", "HARM_CATEGORY_VIOLENCE" or HarmCategory.VIOLENCE to the enum.

    Raises:
        InvalidSelectionError: Unknown category
    """
    if isinstance(key, HarmCategory):
        return key
    if isinstance(key, str):
        name = key.strip().upper()
        if name in HarmCategory.__members__:
            return HarmCategory[name]
        try:
            return HarmCategory(name)
        except ValueError:
            pass
    raise InvalidSelectionError(
        f"Unknown harm category '{key}'. "
        f"Valid categories: {', '.join(name.lower() for name in HarmCategory.__members__)}"
    )


def resolve_threshold(value: ThresholdValue) -> HarmBlockThreshold:
    """
    Map "high", "BLOCK_ONLY_HIGH" or HarmBlockThreshold.BLOCK_ONLY_HIGH to the enum.

    Raises:
        InvalidSelectionError: Unknown threshold code
    """
    if isinstance(value, HarmBlockThreshold):
        return value
    if isinstance(value, str):
        code = value.strip()
        if code.lower() in THRESHOLD_CODES:
            return THRESHOLD_CODES[code.lower()]
        try:
            return HarmBlockThreshold(code.upper())
        except ValueError:
            pass
    raise InvalidSelectionError(
        f"Unsupported safety threshold '{value}'. "
        f"Valid codes: {', '.join(THRESHOLD_CODES)}"
    )


def build_safety_thresholds(
    overrides: Optional[Mapping[CategoryKey, ThresholdValue]] = None,
) -> SafetyThresholds:
    """
    Merge caller overrides with the default threshold.

    All overrides are resolved before anything is merged, so an invalid entry
    fails the whole call.

    Args:
        overrides: Category → threshold code for the categories to change

    Returns:
        SafetyThresholds covering all seven categories

    Raises:
        InvalidSelectionError: Unknown category or threshold code, or two keys
            naming the same category
    """
    resolved: Dict[HarmCategory, HarmBlockThreshold] = {}
    for key, value in (overrides or {}).items():
        category = resolve_category(key)
        if category in resolved:
            raise InvalidSelectionError(
                f"Harm category '{category.name.lower()}' is overridden more than once"
            )
        resolved[category] = resolve_threshold(value)

    levels = {category: DEFAULT_THRESHOLD for category in HarmCategory}
    levels.update(resolved)

    if resolved:
        logger.debug(
            "🛡️ Safety overrides: %s",
            ", ".join(f"{c.name.lower()}={t.value}" for c, t in resolved.items()),
        )

    return SafetyThresholds(levels=levels)
