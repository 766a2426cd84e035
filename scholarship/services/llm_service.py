"""
LLM service for OpenAI-compatible chat completion APIs (Groq by default)
"""
import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from ..config import settings
from ..errors import ConfigurationError, EvaluationEngineError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 409, 429, 500, 502, 503, 504}


class ReasoningRequest(BaseModel):
    model: str
    system_instruction: str
    user_instruction: str
    temperature: float
    force_json_output: bool = True
    max_tokens: Optional[int] = None


class ReasoningResponse(BaseModel):
    text: str
    model_used: str
    tokens_used: int = 0


class LLMService:
    """Thin async client over a chat completions endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.llm_api_key
        if not self.api_key:
            raise ConfigurationError(
                "LLM_API_KEY must be set in environment variables or .env file "
                "when EVALUATION_ENGINE=ai"
            )
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")

        # HTTP client with timeout
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout or settings.llm_timeout_seconds),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json"
            },
            transport=transport,
        )

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def complete(self, request: ReasoningRequest) -> ReasoningResponse:
        """
        Send one chat completion and return the raw message text

        Args:
            request: Model, instructions and sampling settings

        Returns:
            ReasoningResponse whose text is the untouched message content

        Raises:
            EvaluationEngineError: on transport failures, non-200 answers
                or a response without a message
        """
        payload = {
            "model": request.model,
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_instruction}
            ],
            "temperature": request.temperature,
        }
        if request.max_tokens:
            payload["max_tokens"] = request.max_tokens
        if request.force_json_output:
            payload["response_format"] = {"type": "json_object"}

        logger.info(f"Sending request to reasoning service with model: {request.model}")

        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json=payload
            )
        except httpx.TimeoutException as e:
            raise EvaluationEngineError("Reasoning service request timed out", retryable=True) from e
        except httpx.RequestError as e:
            raise EvaluationEngineError(f"Reasoning service request failed: {e}", retryable=True) from e

        if response.status_code != 200:
            error_msg = f"Reasoning service error: {response.status_code} - {response.text[:500]}"
            logger.error(error_msg)
            raise EvaluationEngineError(
                error_msg,
                details={"status_code": response.status_code},
                retryable=response.status_code in RETRYABLE_STATUS_CODES,
            )

        try:
            response_data = response.json()
            content = response_data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise EvaluationEngineError(f"Malformed reasoning service response: {e}") from e

        if content is None:
            raise EvaluationEngineError("Reasoning service returned an empty message")

        return ReasoningResponse(
            text=content,
            model_used=response_data.get("model", request.model),
            tokens_used=(response_data.get("usage") or {}).get("total_tokens", 0),
        )
