"""Built-in column presets for common literature review setups."""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from litsheet.core.exceptions import PresetNotFoundError
from litsheet.models.enums import ColumnType, RowStatus
from litsheet.models.sheet import Column, ColumnOption, Sheet, new_id
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class ColumnPreset:
    """A named, reusable column list."""
    id: str
    name: str
    description: Optional[str] = None
    columns: List[Column] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "columns": [column.to_dict() for column in self.columns],
        }


def _options(*choices: Tuple[str, str, str]) -> List[ColumnOption]:
    return [ColumnOption(id=i, label=label, color=color) for i, label, color in choices]


DEFAULT_PRESETS: List[ColumnPreset] = [
    ColumnPreset(
        id="hci-study",
        name="HCI Study Analysis",
        description="For analyzing HCI/CHI papers with user studies",
        columns=[
            Column(
                id="study-type",
                name="Study Type",
                type=ColumnType.SELECT,
                prompt="What type of study was conducted? Look for methodology section.",
                options=_options(
                    ("lab", "Lab Study", "#3b82f6"),
                    ("field", "Field Study", "#10b981"),
                    ("survey", "Survey", "#f59e0b"),
                    ("interview", "Interview", "#8b5cf6"),
                    ("deployment", "Deployment", "#ec4899"),
                    ("mixed", "Mixed Methods", "#6366f1"),
                    ("other", "Other", "#6b7280"),
                ),
                width=140,
            ),
            Column(
                id="participants",
                name="Participants (N)",
                type=ColumnType.NUMBER,
                prompt='How many participants were in the study? Look for N= or "participants" in methodology.',
                width=120,
            ),
            Column(
                id="population",
                name="Population",
                type=ColumnType.TEXT,
                prompt="Who were the participants? (e.g., students, older adults, experts)",
                width=180,
            ),
            Column(
                id="system",
                name="System/Prototype",
                type=ColumnType.TEXT,
                prompt="What system, tool, or prototype was built or evaluated?",
            ),
            Column(
                id="key-findings",
                name="Key Findings",
                type=ColumnType.TEXT,
                prompt="What were the main findings or contributions? Summarize in 1-2 sentences.",
                width=300,
            ),
            Column(
                id="limitations",
                name="Limitations",
                type=ColumnType.TEXT,
                prompt="What limitations did the authors mention?",
                width=250,
            ),
        ],
    ),
    ColumnPreset(
        id="systematic-review",
        name="Systematic Review",
        description="For conducting systematic literature reviews",
        columns=[
            Column(
                id="research-question",
                name="Research Question",
                type=ColumnType.TEXT,
                prompt="What research question does this paper address?",
                width=250,
            ),
            Column(
                id="methodology",
                name="Methodology",
                type=ColumnType.TEXT,
                prompt="What methodology or approach was used?",
            ),
            Column(
                id="sample-size",
                name="Sample Size",
                type=ColumnType.TEXT,
                prompt="What was the sample size? Include units if applicable.",
                width=120,
            ),
            Column(
                id="data-collection",
                name="Data Collection",
                type=ColumnType.MULTISELECT,
                prompt="How was data collected?",
                options=_options(
                    ("surveys", "Surveys", "#3b82f6"),
                    ("interviews", "Interviews", "#10b981"),
                    ("observations", "Observations", "#f59e0b"),
                    ("logs", "System Logs", "#8b5cf6"),
                    ("sensors", "Sensors", "#ec4899"),
                    ("secondary", "Secondary Data", "#6366f1"),
                ),
                width=180,
            ),
            Column(
                id="main-results",
                name="Main Results",
                type=ColumnType.TEXT,
                prompt="What were the main results or findings?",
                width=300,
            ),
            Column(
                id="quality",
                name="Quality Assessment",
                type=ColumnType.SELECT,
                prompt="Rate the methodological quality of this study.",
                options=_options(
                    ("high", "High", "#10b981"),
                    ("medium", "Medium", "#f59e0b"),
                    ("low", "Low", "#ef4444"),
                ),
                width=130,
            ),
        ],
    ),
    ColumnPreset(
        id="design-space",
        name="Design Space Analysis",
        description="For mapping design spaces and comparing systems",
        columns=[
            Column(
                id="domain",
                name="Application Domain",
                type=ColumnType.TEXT,
                prompt="What domain or context is this system designed for?",
                width=180,
            ),
            Column(
                id="input-modality",
                name="Input Modality",
                type=ColumnType.MULTISELECT,
                prompt="What input modalities does the system support?",
                options=_options(
                    ("touch", "Touch", "#3b82f6"),
                    ("voice", "Voice", "#10b981"),
                    ("gesture", "Gesture", "#f59e0b"),
                    ("gaze", "Gaze", "#8b5cf6"),
                    ("keyboard", "Keyboard/Mouse", "#6b7280"),
                    ("pen", "Pen/Stylus", "#ec4899"),
                ),
                width=180,
            ),
            Column(
                id="output-modality",
                name="Output Modality",
                type=ColumnType.MULTISELECT,
                prompt="What output modalities does the system use?",
                options=_options(
                    ("visual", "Visual", "#3b82f6"),
                    ("audio", "Audio", "#10b981"),
                    ("haptic", "Haptic", "#f59e0b"),
                    ("ar", "AR/VR", "#8b5cf6"),
                ),
                width=180,
            ),
            Column(
                id="key-technique",
                name="Key Technique",
                type=ColumnType.TEXT,
                prompt="What is the key technical contribution or novel technique?",
                width=250,
            ),
            Column(
                id="evaluation",
                name="Evaluation Type",
                type=ColumnType.SELECT,
                prompt="How was the system evaluated?",
                options=_options(
                    ("user-study", "User Study", "#3b82f6"),
                    ("technical", "Technical Evaluation", "#10b981"),
                    ("case-study", "Case Study", "#f59e0b"),
                    ("none", "No Formal Evaluation", "#6b7280"),
                ),
                width=160,
            ),
        ],
    ),
]


def get_preset(preset_id: str) -> ColumnPreset:
    """Look up a built-in preset by ID.

    Raises:
        PresetNotFoundError: If no preset has this ID
    """
    for preset in DEFAULT_PRESETS:
        if preset.id == preset_id:
            return preset
    raise PresetNotFoundError(f"Preset {preset_id} not found")


def apply_preset(sheet: Sheet, preset: ColumnPreset) -> Sheet:
    """Replace the sheet's columns with a fresh copy of a preset's.

    Column IDs are regenerated so two sheets never share them. Every row
    keeps its identity and document but loses its cells and goes back to
    pending.
    """
    columns = copy.deepcopy(preset.columns)
    for column in columns:
        column.id = new_id()

    sheet.columns = columns
    for row in sheet.rows:
        row.cells = {}
        row.status = RowStatus.PENDING
        row.error_message = None
        row.extracted_at = None
    sheet.touch()

    LOGGER.info(
        "Applied column preset",
        extra={"sheet_id": sheet.id, "preset_id": preset.id, "columns": len(columns)},
    )
    return sheet
