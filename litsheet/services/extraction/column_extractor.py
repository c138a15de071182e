"""Single-cell extraction: one column over one document.

Builds the column-specific prompt, sends it to the completion service and
turns the JSON answer into a typed ``ExtractionResult``.
"""

import math
from typing import Any

from litsheet.core.exceptions import AppError, CompletionServiceError, ExtractionParseError
from litsheet.models.sheet import Column
from litsheet.models.values import coerce_ai_value
from litsheet.services.extraction.prompts import build_extraction_prompts
from litsheet.services.sheet.contracts import CompletionService
from litsheet.services.sheet.provenance import ExtractionResult
from litsheet.utils.json_parser import parse_json_safely
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.5


def _clamp_confidence(raw: Any) -> float:
    if raw is None or isinstance(raw, bool):
        return DEFAULT_CONFIDENCE
    try:
        confidence = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if not math.isfinite(confidence):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, confidence))


def parse_extraction_response(response: str, column: Column) -> ExtractionResult:
    """Parse a raw completion into a typed result.

    Args:
        response: Raw completion text, optionally wrapped in code fences
        column: Column the answer belongs to

    Returns:
        ExtractionResult with the value coerced to the column type

    Raises:
        ExtractionParseError: If the response is not a JSON object
    """
    parsed = parse_json_safely(response)
    if not isinstance(parsed, dict):
        raise ExtractionParseError(
            f"Extraction response for column '{column.name}' is not a JSON object"
        )

    source_text = parsed.get("sourceText", parsed.get("source_text"))
    return ExtractionResult(
        value=coerce_ai_value(parsed.get("value"), column.type),
        confidence=_clamp_confidence(parsed.get("confidence")),
        source_text=source_text if isinstance(source_text, str) and source_text else None,
    )


class ColumnExtractor:
    """Extracts one typed cell value with the completion service.

    Attributes:
        client: Completion service used for every call
    """

    def __init__(self, client: CompletionService):
        self.client = client

    async def extract(self, document_text: str, column: Column) -> ExtractionResult:
        """Extract a column value, raising on service failures.

        Malformed output degrades to a null, zero-confidence result; the
        caller decides what a service failure means for the row or cell.

        Raises:
            CompletionServiceError: If the completion call fails
        """
        system_prompt, user_prompt = build_extraction_prompts(document_text, column)

        try:
            response = await self.client.complete(system_prompt, user_prompt)
        except AppError:
            raise
        except Exception as e:
            raise CompletionServiceError(f"Completion failed: {str(e)}", original_error=e)

        try:
            return parse_extraction_response(response, column)
        except ExtractionParseError as e:
            LOGGER.warning(
                str(e),
                extra={"column_id": column.id, "response_preview": (response or "")[:200]},
            )
            return ExtractionResult(value=None, confidence=0.0)

    async def extract_column_value(
        self,
        document_text: str,
        column: Column,
    ) -> ExtractionResult:
        """Extract a column value; any failure yields a null result."""
        try:
            return await self.extract(document_text, column)
        except Exception as e:
            LOGGER.error(
                f"Column extraction failed: {str(e)}",
                exc_info=True,
                extra={"column_id": column.id, "column_name": column.name},
            )
            return ExtractionResult(value=None, confidence=0.0)

