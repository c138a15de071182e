"""Prompt templates for column extraction and column design."""

from typing import List, Tuple

from litsheet.models.enums import ColumnType
from litsheet.models.sheet import Column

# Documents are truncated to this many characters before extraction.
# This is a lossy prefix window, not retrieval.
DOCUMENT_CONTEXT_CHARS = 15000

SOURCE_TEXT_MAX_CHARS = 100

EXTRACTION_SYSTEM_PROMPT = """You are an expert research paper analyst. Extract specific information from academic papers with high accuracy.
Your task is to find and extract: "{name}"
Description: {prompt}
{type_rules}
Respond in this exact JSON format:
{{
  "value": "<extracted value>",
  "confidence": <0.0-1.0>,
  "sourceText": "<brief quote from paper supporting this, max {source_chars} chars>"
}}"""

EXTRACTION_USER_PROMPT = """Paper text (truncated to first {limit} chars for context):

{text}"""


def type_rules(column: Column) -> str:
    """Type-specific answer constraints for the extraction prompt."""
    labels = ", ".join(column.option_labels)

    if column.type == ColumnType.SELECT:
        return (
            f"\nIMPORTANT: Your answer MUST be exactly one of these options: {labels}\n"
            'If none fit well, choose the closest match or "Other" if available.\n'
        )
    if column.type == ColumnType.MULTISELECT:
        return (
            f"\nIMPORTANT: Your answer MUST be a comma-separated list of ONLY these options: {labels}\n"
            "Only include options that clearly apply.\n"
        )
    if column.type == ColumnType.NUMBER:
        return (
            "\nIMPORTANT: Your answer MUST be a number only (no units, no text). "
            'If no number is found, respond with "N/A".\n'
        )
    if column.type == ColumnType.BOOLEAN:
        return '\nIMPORTANT: Your answer MUST be exactly "Yes" or "No".\n'
    return ""


def build_extraction_prompts(document_text: str, column: Column) -> Tuple[str, str]:
    """Build (system, user) prompts for one column over one document."""
    system_prompt = EXTRACTION_SYSTEM_PROMPT.format(
        name=column.name,
        prompt=column.prompt,
        type_rules=type_rules(column),
        source_chars=SOURCE_TEXT_MAX_CHARS,
    )
    user_prompt = EXTRACTION_USER_PROMPT.format(
        limit=DOCUMENT_CONTEXT_CHARS,
        text=document_text[:DOCUMENT_CONTEXT_CHARS],
    )
    return system_prompt, user_prompt


PROMPT_GENERATION_SYSTEM_PROMPT = """You are an expert at creating precise extraction prompts for academic paper analysis.
Given a list of column names and their data types, generate specific prompts that an AI should use to extract the relevant information from research papers.

Each prompt should be:
- Clear and specific about what to look for
- Include examples when helpful
- Account for cases where information might not be present
- Be appropriate for the data type (e.g., for numbers, ask for numeric values; for boolean, ask for yes/no)

For select/multiselect types with options, the prompt should guide the AI to choose from the provided options."""

PROMPT_GENERATION_USER_PROMPT = """Generate extraction prompts for these columns that will be used to analyze research papers:

{columns}

Return a JSON array of prompts in the same order as the columns. Each prompt should be a string.
Example response format: ["prompt for column 1", "prompt for column 2", ...]"""

COLUMN_INFERENCE_SYSTEM_PROMPT = """You are an expert at designing data schemas for literature review analysis.

Given natural language descriptions of what information to extract from academic papers, you will:
1. Create a short, clear column NAME (2-4 words max)
2. Determine the best data TYPE:
   - "text" for free-form text answers
   - "number" for numeric values (sample size, year, count, etc.)
   - "boolean" for yes/no questions
   - "select" for single-choice from a list (if categories are mentioned or implied)
   - "multiselect" for multiple choices from a list
3. Write a precise extraction PROMPT that tells an AI exactly what to look for
4. If type is "select" or "multiselect", provide the OPTIONS array

Be intelligent about inferring types:
- Questions asking "what type/kind/category" -> often "select"
- Questions asking "does the paper..." or "is there..." -> "boolean"
- Questions about counts, sizes, years -> "number"
- Questions about methods, findings, limitations -> "text\""""

COLUMN_INFERENCE_USER_PROMPT = """Convert these descriptions into structured columns for a literature review spreadsheet:

{descriptions}

Return a JSON array of objects with this structure:
[
  {{
    "name": "Short Column Name",
    "type": "text|number|boolean|select|multiselect",
    "description": "Detailed extraction prompt for the AI",
    "options": ["Option 1", "Option 2"]
  }}
]
Only include "options" for select/multiselect columns."""


def numbered(lines: List[str]) -> str:
    return "\n".join(f"{i + 1}. {line}" for i, line in enumerate(lines))
