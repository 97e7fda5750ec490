"""
Tiered Logging Configuration for palmtext

Provides a flexible logging system with 5 levels:
- TRACE (5): Ultra-verbose debugging (full payloads, raw responses)
- DEBUG (10): Detailed debugging (composed prompts, classification steps)
- INFO (20): Standard operational messages (requests sent, outcomes)
- WARN (30): Warnings (remote errors, safety feedback, retries)
- ERROR (40): Errors (transport failures)

Environment Variables:
- LOG_LEVEL: Global log level (TRACE, DEBUG, INFO, WARN, ERROR) [default: INFO]
- LOG_LEVEL_COMPOSER: Override for request composition (prompts, safety block)
- LOG_LEVEL_INTERPRETER: Override for response classification
- LOG_LEVEL_TRANSPORT: Override for the HTTP client
- LOG_LEVEL_CLI: Override for the command line front-end

Example Usage:
    from palmtext.config.logging_config import get_logger

    logger = get_logger(__name__)
    logger.trace("🔍 Raw response: %s", body)
    logger.debug("📝 Composed prompt (%d chars)", len(prompt))
    logger.info("✅ generateText returned a candidate")
    logger.warning("⚠️ Retrying request (attempt 2/3)")
    logger.error("❌ Request timed out: %s", error)
"""

import logging
import os
import re


# Define custom TRACE level (more verbose than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def trace(self, message, *args, **kwargs):
    """Log a message with severity 'TRACE'."""
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


# Add trace method to Logger class
logging.Logger.trace = trace


# Module name mapping: Python module path → Logical component name
MODULE_NAME_MAP = {
    "palmtext.llm.composer": "palmtext.composer",
    "palmtext.llm.prompts": "palmtext.composer",
    "palmtext.llm.safety": "palmtext.composer",
    "palmtext.llm.interpreter": "palmtext.interpreter",
    "palmtext.llm.client": "palmtext.transport",
    "palmtext.cli": "palmtext.cli",
}

COMPONENT_OVERRIDES = ["COMPOSER", "INTERPRETER", "TRANSPORT", "CLI"]

_API_KEY_RE = re.compile(r"key=[^&\s]+")


def get_log_level(module_name: str, default: str = "INFO") -> int:
    """
    Get the log level for a module, checking both component-specific and global env vars.

    Priority:
    1. Component-specific env var (LOG_LEVEL_COMPOSER, LOG_LEVEL_TRANSPORT, etc.)
    2. Global LOG_LEVEL env var
    3. Default level (INFO)

    Args:
        module_name: Python module name (e.g., "palmtext.llm.client")
        default: Default log level if no env vars set

    Returns:
        Numeric log level (5=TRACE, 10=DEBUG, 20=INFO, 30=WARN, 40=ERROR)
    """
    logical_name = MODULE_NAME_MAP.get(module_name)

    # Only mapped modules get a component override
    if logical_name:
        component = logical_name.split(".")[-1].upper()
        module_level = os.getenv(f"LOG_LEVEL_{component}")
        if module_level:
            return _parse_log_level(module_level)

    global_level = os.getenv("LOG_LEVEL")
    if global_level:
        return _parse_log_level(global_level)

    return _parse_log_level(default)


def _parse_log_level(level_str: str) -> int:
    """
    Parse log level string to numeric value.

    Args:
        level_str: Log level name (TRACE, DEBUG, INFO, WARN, ERROR)

    Returns:
        Numeric log level
    """
    level_map = {
        "TRACE": TRACE,
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
    }
    return level_map.get(level_str.strip().upper(), logging.INFO)


def redact_url(url: str) -> str:
    """Mask the API key query parameter so URLs are safe to log."""
    return _API_KEY_RE.sub("key=***", url)


def configure_logging(default_level: str = "INFO") -> None:
    """
    Configure logging system with tiered levels and per-component control.

    Call once from an entry point (the CLI does this). Library code only
    obtains loggers through get_logger().

    Args:
        default_level: Default log level if LOG_LEVEL env var not set
    """
    global_level = os.getenv("LOG_LEVEL", default_level)
    numeric_level = _parse_log_level(global_level)

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    # Module loggers were leveled at import time against the library default
    for name, existing in list(logging.Logger.manager.loggerDict.items()):
        if name.startswith("palmtext") and isinstance(existing, logging.Logger):
            existing.setLevel(get_log_level(name, default_level))

    root_logger = logging.getLogger()
    root_logger.debug(f"🚀 Logging system initialized (global level: {global_level})")

    module_overrides = []
    for component in COMPONENT_OVERRIDES:
        override = os.getenv(f"LOG_LEVEL_{component}")
        if override:
            module_overrides.append(f"{component}={override}")

    if module_overrides:
        root_logger.debug(f"📋 Component overrides: {', '.join(module_overrides)}")


def get_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for a module with appropriate log level.

    This is the main entry point for getting loggers in palmtext code.

    Args:
        module_name: Python module name (use __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(module_name)

    level = get_log_level(module_name)
    logger.setLevel(level)

    return logger
