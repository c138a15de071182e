import asyncio
from typing import Dict, Any, Optional

import httpx
from httpx import TimeoutException, HTTPStatusError

from litsheet.core.exceptions import APIClientError, APITimeoutError
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseLLMClient:
    """HTTP transport for chat-completion style APIs.

    Handles bearer auth, retries with exponential backoff, timeout
    management and error logging. Provider wrappers build payloads and
    read responses on top of ``call_api``.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 3,
        retry_delay: float = 2,
    ):
        """Initialize the HTTP client.

        Args:
            api_key: API key for authentication
            base_url: Full endpoint URL
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.logger = LOGGER

    async def call_api(
        self,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST a JSON payload with retry logic.

        Args:
            payload: JSON payload
            headers: Additional headers

        Returns:
            Parsed JSON response

        Raises:
            APIClientError: If the call fails after retries
            APITimeoutError: If every attempt times out
        """
        request_headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if headers:
            request_headers.update(headers)

        self.logger.debug(
            f"Calling completion API: {self.base_url}",
            extra={"timeout": self.timeout, "model": payload.get("model")},
        )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                try:
                    response = await client.post(self.base_url, headers=request_headers, json=payload)
                    response.raise_for_status()
                    return response.json()

                except HTTPStatusError as e:
                    await self._handle_http_error(e, attempt)

                except TimeoutException as e:
                    await self._handle_timeout_error(e, attempt)

                except (httpx.HTTPError, ValueError) as e:
                    await self._handle_generic_error(e, attempt)

        raise APIClientError(f"Failed to call API {self.base_url} after {self.max_retries} attempts")

    async def _handle_http_error(self, error: HTTPStatusError, attempt: int):
        """Handle HTTP status errors."""
        status_code = error.response.status_code
        error_body = error.response.text

        self.logger.warning(
            f"API HTTP error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": self.base_url, "status_code": status_code, "error_body": error_body[:500]},
        )

        # Client errors are final except rate limiting
        if 400 <= status_code < 500 and status_code != 429:
            raise APIClientError(f"API Client Error {status_code}: {error_body}", original_error=error) from error

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APIClientError(f"API HTTP Error {status_code} after retries", original_error=error) from error

    async def _handle_timeout_error(self, error: TimeoutException, attempt: int):
        """Handle timeout errors."""
        self.logger.warning(
            f"API Timeout (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": self.base_url},
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APITimeoutError(f"API Timeout after {self.max_retries} attempts", original_error=error) from error

    async def _handle_generic_error(self, error: Exception, attempt: int):
        """Handle transport and decoding errors."""
        self.logger.warning(
            f"API Error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": self.base_url, "error": str(error)},
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APIClientError(f"API Error: {str(error)}", original_error=error) from error

    async def _wait_before_retry(self, attempt: int):
        """Exponential backoff wait."""
        await asyncio.sleep(self.retry_delay * (2 ** attempt))
