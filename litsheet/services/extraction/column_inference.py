"""AI-assisted column design.

Two helpers used when building a sheet's schema: drafting extraction
prompts for named columns, and turning plain-language descriptions into
full column drafts.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from litsheet.models.enums import ColumnType
from litsheet.services.extraction.prompts import (
    COLUMN_INFERENCE_SYSTEM_PROMPT,
    COLUMN_INFERENCE_USER_PROMPT,
    PROMPT_GENERATION_SYSTEM_PROMPT,
    PROMPT_GENERATION_USER_PROMPT,
    numbered,
)
from litsheet.services.sheet.contracts import CompletionService
from litsheet.utils.json_parser import parse_json_safely
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

FALLBACK_NAME_CHARS = 30


@dataclass
class ColumnDraft:
    """A proposed column that has not been added to a sheet yet."""
    name: str
    type: ColumnType = ColumnType.TEXT
    prompt: str = ""
    options: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "prompt": self.prompt,
            "options": list(self.options),
        }


def _describe(draft: ColumnDraft) -> str:
    line = f'"{draft.name}" ({draft.type.value})'
    if draft.options:
        line += f" - Options: {', '.join(draft.options)}"
    return line


def _draft_from_payload(item: Any) -> ColumnDraft:
    if not isinstance(item, dict):
        return ColumnDraft(name="Unnamed")

    try:
        column_type = ColumnType(item.get("type"))
    except ValueError:
        column_type = ColumnType.TEXT

    options = [
        str(option).strip()
        for option in item.get("options") or []
        if option is not None and str(option).strip()
    ]
    # Select columns need options; without any the draft degrades to text.
    if column_type.is_select and not options:
        column_type = ColumnType.TEXT
    if not column_type.is_select:
        options = []

    return ColumnDraft(
        name=str(item.get("name") or "Unnamed"),
        type=column_type,
        prompt=str(item.get("description") or item.get("prompt") or ""),
        options=options,
    )


async def generate_column_prompts(
    client: CompletionService,
    drafts: List[ColumnDraft],
) -> List[str]:
    """Draft an extraction prompt for each column.

    Args:
        client: Completion service
        drafts: Columns by name, type and options

    Returns:
        One prompt per draft, in order; empty strings when the answer
        cannot be used

    Raises:
        CompletionServiceError: If the completion call fails
    """
    if not drafts:
        return []

    response = await client.complete(
        PROMPT_GENERATION_SYSTEM_PROMPT,
        PROMPT_GENERATION_USER_PROMPT.format(
            columns=numbered([_describe(draft) for draft in drafts])
        ),
    )

    parsed = parse_json_safely(response)
    if not isinstance(parsed, list):
        LOGGER.warning(
            "Prompt generation returned no JSON array",
            extra={"columns": len(drafts)},
        )
        return ["" for _ in drafts]

    prompts = [item if isinstance(item, str) else "" for item in parsed]
    prompts = prompts[: len(drafts)]
    prompts.extend("" for _ in range(len(drafts) - len(prompts)))
    return prompts


async def infer_columns_from_descriptions(
    client: CompletionService,
    descriptions: List[str],
) -> List[ColumnDraft]:
    """Turn natural-language descriptions into column drafts.

    Falls back to one text column per description when the answer is not
    a JSON array.

    Raises:
        CompletionServiceError: If the completion call fails
    """
    descriptions = [d.strip() for d in descriptions if d and d.strip()]
    if not descriptions:
        return []

    response = await client.complete(
        COLUMN_INFERENCE_SYSTEM_PROMPT,
        COLUMN_INFERENCE_USER_PROMPT.format(descriptions=numbered(descriptions)),
    )

    parsed = parse_json_safely(response)
    if not isinstance(parsed, list):
        LOGGER.warning(
            "Column inference returned no JSON array, using text columns",
            extra={"descriptions": len(descriptions)},
        )
        return [
            ColumnDraft(name=d[:FALLBACK_NAME_CHARS], prompt=d)
            for d in descriptions
        ]

    drafts = [_draft_from_payload(item) for item in parsed]
    LOGGER.info(
        "Inferred columns from descriptions",
        extra={"descriptions": len(descriptions), "columns": len(drafts)},
    )
    return drafts
