"""
Client Settings Module

Defaults for the connection and sampling parameters, loaded from environment
variables with fallback defaults.

Architecture:
- Environment (this module) → ConnectionContext / GenerationConfig → per-call overrides
"""

import os
from dataclasses import dataclass
from typing import Optional

from palmtext.llm.types import (
    ConnectionContext,
    GenerationConfig,
    InvalidInputError,
    build_connection,
    build_generation_config,
)


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class PalmSettings:
    """
    Settings for the PaLM text client.

    api_key is optional here so the settings can be loaded without one;
    connection() requires it.
    """

    api_key: Optional[str] = None

    # Model selection
    model_version: str = "v1beta3"
    model_type: str = "text-bison-001"
    use_proxy: bool = False

    # Transport
    timeout_s: float = 60.0

    # Sampling defaults
    temperature: float = 0.7
    max_output_tokens: int = 1024
    top_p: float = 0.95
    top_k: int = 40

    @classmethod
    def from_env(cls) -> "PalmSettings":
        """
        Load settings from environment variables.

        Environment Variables:
            PALM_API_KEY: API key (no default)
            PALM_MODEL_VERSION: v1beta2 | v1beta3 (default: v1beta3)
            PALM_MODEL_TYPE: Model identifier (default: text-bison-001)
            PALM_USE_PROXY: Route through the proxy host (default: false)
            PALM_TIMEOUT_S: Read timeout in seconds (default: 60)
            PALM_TEMPERATURE: Default temperature (default: 0.7)
            PALM_MAX_OUTPUT_TOKENS: Default token limit (default: 1024)
            PALM_TOP_P: Default top-p (default: 0.95)
            PALM_TOP_K: Default top-k (default: 40)
        """
        try:
            return cls(
                api_key=os.getenv("PALM_API_KEY") or None,
                model_version=os.getenv("PALM_MODEL_VERSION", "v1beta3"),
                model_type=os.getenv("PALM_MODEL_TYPE", "text-bison-001"),
                use_proxy=_env_bool(os.getenv("PALM_USE_PROXY"), False),
                timeout_s=float(os.getenv("PALM_TIMEOUT_S", "60")),
                temperature=float(os.getenv("PALM_TEMPERATURE", "0.7")),
                max_output_tokens=int(os.getenv("PALM_MAX_OUTPUT_TOKENS", "1024")),
                top_p=float(os.getenv("PALM_TOP_P", "0.95")),
                top_k=int(os.getenv("PALM_TOP_K", "40")),
            )
        except ValueError as e:
            raise ValueError(f"Invalid PALM_* environment value: {e}") from e

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: Timeout not positive
            InvalidSelectionError / OutOfRangeError: Invalid model or sampling defaults
        """
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        self.generation_config()
        if self.api_key:
            self.connection()

    def connection(self) -> ConnectionContext:
        """Build the ConnectionContext for these settings."""
        if not self.api_key:
            raise InvalidInputError(
                "PaLM API key not found. "
                "Set PALM_API_KEY environment variable or pass api_key."
            )
        return build_connection(
            api_key=self.api_key,
            model_version=self.model_version,
            model_type=self.model_type,
            use_proxy=self.use_proxy,
        )

    def generation_config(self) -> GenerationConfig:
        """Default sampling parameters."""
        return build_generation_config({
            "temperature": self.temperature,
            "max_output_tokens": self.max_output_tokens,
            "top_p": self.top_p,
            "top_k": self.top_k,
        })


def load_palm_settings() -> PalmSettings:
    """Load and validate settings from the environment."""
    settings = PalmSettings.from_env()
    settings.validate()
    return settings


# Global singleton instance
_palm_settings: Optional[PalmSettings] = None


def get_palm_settings() -> PalmSettings:
    """Get cached settings (loaded from the environment on first call)."""
    global _palm_settings
    if _palm_settings is None:
        _palm_settings = load_palm_settings()
    return _palm_settings


def reset_palm_settings() -> None:
    """Clear cached settings. Useful for testing or CLI overrides."""
    global _palm_settings
    _palm_settings = None
