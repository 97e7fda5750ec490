"""
HTTP transport for the PaLM generateText API.

Sends composed requests with httpx, retries transient transport failures and
hands the parsed body to the response interpreter. Remote errors and safety
blocks come back as outcome values; only transport failures are raised.
"""

from typing import Any, Mapping, Optional, Union

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from palmtext.config.logging_config import get_logger, redact_url
from palmtext.llm.composer import OperationRequest, compose, model_url
from palmtext.llm.interpreter import interpret
from palmtext.llm.prompts import (
    ExplainCodeParams,
    FixGrammarParams,
    GenerateParams,
    GetReferenceParams,
    Operation,
    OperationParams,
    OptimizationAspect,
    OptimizeCodeParams,
    SourceType,
)
from palmtext.llm.safety import CategoryKey, ThresholdValue
from palmtext.llm.types import (
    ConnectionContext,
    GenerationConfig,
    OperationOutcome,
    PalmConnectionError,
    PalmRemoteError,
    PalmResponseError,
    PalmTimeoutError,
    build_generation_config,
)

logger = get_logger(__name__)

GenerationOptions = Union[GenerationConfig, Mapping[str, Any], None]
SafetyOverrides = Optional[Mapping[CategoryKey, ThresholdValue]]


class PalmTextClient:
    """
    Async client for one ConnectionContext.

    The connection and every per-call value are immutable, so concurrent
    calls on one client need no coordination. The underlying httpx client is
    reused across requests; release it with close() or `async with`.
    """

    TIMEOUT_READ = 60.0  # seconds
    HEADERS = {"Content-Type": "application/json"}

    def __init__(
        self,
        connection: ConnectionContext,
        timeout_s: Optional[float] = None,
        default_generation: GenerationOptions = None,
    ):
        """
        Initialize the client.

        Args:
            connection: Context from build_connection()
            timeout_s: Read timeout in seconds (default: 60)
            default_generation: Sampling parameters used when a call passes
                none (default: GenerationConfig defaults)
        """
        if not isinstance(connection, ConnectionContext):
            raise TypeError("PalmTextClient requires a ConnectionContext (see build_connection)")

        self.connection = connection
        self.timeout_s = timeout_s or self.TIMEOUT_READ
        self.default_generation = build_generation_config(default_generation)

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=10.0,
                read=self.timeout_s,
                write=10.0,
                pool=10.0,
            ),
            follow_redirects=True,
        )

        logger.info(
            f"🤖 PaLM [{connection.model_type.value}]: Initialized "
            f"({connection.model_version.value}, proxy={connection.use_proxy})"
        )

    @classmethod
    def from_settings(cls, settings=None) -> "PalmTextClient":
        """Create a client from PalmSettings (environment by default)."""
        from palmtext.config.settings import get_palm_settings

        settings = settings or get_palm_settings()
        return cls(
            settings.connection(),
            timeout_s=settings.timeout_s,
            default_generation=settings.generation_config(),
        )

    # ------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
        reraise=True,
    )
    async def _post_with_retry(self, url: str, payload: dict) -> httpx.Response:
        """
        POST with retry logic for transient errors.

        Non-2xx responses are returned as-is: the API reports bad keys and
        invalid arguments in a JSON error body the interpreter understands.

        Raises:
            httpx.TimeoutException: Timeout
            httpx.RequestError: Connection error
        """
        return await self.client.post(url, headers=self.HEADERS, json=payload)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
        reraise=True,
    )
    async def _get_with_retry(self, url: str) -> httpx.Response:
        return await self.client.get(url, headers=self.HEADERS)

    def _parse_json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"🤖 PaLM: Response is not JSON (status {response.status_code})"
            )
            raise PalmResponseError(
                f"PaLM API returned a non-JSON body (status {response.status_code})"
            ) from e

    async def _call(self, method: str, url: str, payload: Optional[dict] = None) -> Any:
        safe_url = redact_url(url)
        try:
            if method == "POST":
                response = await self._post_with_retry(url, payload)
            else:
                response = await self._get_with_retry(url)

        except httpx.TimeoutException as e:
            logger.error(f"🤖 PaLM: Timeout - {safe_url}")
            raise PalmTimeoutError(f"PaLM request timeout: {safe_url}") from e

        except httpx.RequestError as e:
            logger.error(f"🤖 PaLM: Connection error - {type(e).__name__} ({safe_url})")
            raise PalmConnectionError(
                f"PaLM connection error: {type(e).__name__} ({safe_url})"
            ) from e

        logger.debug(f"🤖 PaLM: {method} {safe_url} -> {response.status_code}")
        return self._parse_json(response)

    async def check_connection(self) -> dict:
        """
        Probe the model resource to confirm the key and model selection.

        Returns:
            dict: Model description returned by the API

        Raises:
            PalmRemoteError: API answered with an error (e.g. invalid key)
            PalmTimeoutError: Request timeout
            PalmConnectionError: Network error
            PalmResponseError: Non-JSON body
        """
        data = await self._call("GET", model_url(self.connection))

        if isinstance(data, Mapping) and data.get("error") is not None:
            error = data["error"]
            message = error.get("message") if isinstance(error, Mapping) else str(error)
            code = error.get("code") if isinstance(error, Mapping) else None
            logger.error(f"🤖 PaLM: Connection check failed - {message}")
            raise PalmRemoteError(message or "PaLM API rejected the connection", code=code)

        logger.info("🤖 PaLM: Connection check passed")
        return dict(data) if isinstance(data, Mapping) else {"model": data}

    async def send(self, request: OperationRequest) -> OperationOutcome:
        """
        Send a composed request and interpret the response.

        Raises:
            PalmTimeoutError: Request timeout
            PalmConnectionError: Network error after retries
            PalmResponseError: Non-JSON body
        """
        logger.info(f"🤖 PaLM [{request.operation.value}]: Sending request")
        logger.trace("🤖 PaLM: Payload %s", request.payload)

        data = await self._call("POST", request.url, request.payload)
        outcome = interpret(data)

        logger.info(f"🤖 PaLM [{request.operation.value}]: {outcome.outcome}")
        return outcome

    # ------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------

    async def run(
        self,
        operation: Union[str, Operation],
        params: OperationParams,
        generation_config: GenerationOptions = None,
        safety_overrides: SafetyOverrides = None,
    ) -> OperationOutcome:
        """
        Compose and send any operation.

        generation_config=None falls back to the client's default_generation.
        """
        if generation_config is None:
            generation_config = self.default_generation

        request = compose(
            operation,
            params,
            self.connection,
            generation_config=generation_config,
            safety_overrides=safety_overrides,
        )
        return await self.send(request)

    async def generate_text(
        self,
        prompt: str,
        generation_config: GenerationOptions = None,
        safety_overrides: SafetyOverrides = None,
    ) -> OperationOutcome:
        return await self.run(
            Operation.GENERATE,
            GenerateParams(prompt=prompt),
            generation_config,
            safety_overrides,
        )

    async def fix_grammar(
        self,
        text: str,
        generation_config: GenerationOptions = None,
        safety_overrides: SafetyOverrides = None,
    ) -> OperationOutcome:
        return await self.run(
            Operation.FIX_GRAMMAR,
            FixGrammarParams(text=text),
            generation_config,
            safety_overrides,
        )

    async def get_reference(
        self,
        topic: str,
        source_type: Union[str, SourceType] = SourceType.ARTICLES,
        source_date: str = "most recent",
        num_sources: int = 5,
        citation_style: str = "APA",
        generation_config: GenerationOptions = None,
        safety_overrides: SafetyOverrides = None,
    ) -> OperationOutcome:
        params = GetReferenceParams(
            topic=topic,
            source_type=source_type,
            source_date=source_date,
            num_sources=num_sources,
            citation_style=citation_style,
        )
        return await self.run(Operation.GET_REFERENCE, params, generation_config, safety_overrides)

    async def explain_code(
        self,
        code: str,
        language: str,
        generation_config: GenerationOptions = None,
        safety_overrides: SafetyOverrides = None,
    ) -> OperationOutcome:
        return await self.run(
            Operation.EXPLAIN_CODE,
            ExplainCodeParams(code=code, language=language),
            generation_config,
            safety_overrides,
        )

    async def optimize_code(
        self,
        code: str,
        language: str,
        aspect: Union[str, OptimizationAspect] = OptimizationAspect.GENERAL,
        goal: Optional[str] = None,
        generation_config: GenerationOptions = None,
        safety_overrides: SafetyOverrides = None,
    ) -> OperationOutcome:
        params = OptimizeCodeParams(code=code, language=language, aspect=aspect, goal=goal)
        return await self.run(Operation.OPTIMIZE_CODE, params, generation_config, safety_overrides)

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
