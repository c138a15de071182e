"""Version snapshots and preview mode.

Versions are append-only deep copies of a sheet's columns and rows.
Previewing only moves a pointer; live data is never touched, so leaving
preview restores exactly what was there before.
"""

from typing import Optional

from litsheet.core.exceptions import SheetReadOnlyError
from litsheet.models.sheet import Sheet, Version
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)


def default_version_name(sheet: Sheet) -> str:
    return f"Version {len(sheet.versions) + 1}"


def ensure_editable(sheet: Sheet) -> None:
    """Reject mutations while a version is being previewed.

    Raises:
        SheetReadOnlyError: If the sheet is in preview mode
    """
    if sheet.is_previewing:
        raise SheetReadOnlyError(
            f"Sheet {sheet.id} is previewing version {sheet.viewing_version_id}; exit preview to edit"
        )


def save_version(sheet: Sheet, name: Optional[str] = None) -> Version:
    """Snapshot the live columns and rows.

    Args:
        sheet: Sheet to snapshot
        name: Version name; defaults to "Version N"

    Returns:
        The new Version, already appended to ``sheet.versions``

    Raises:
        SheetReadOnlyError: If the sheet is in preview mode
    """
    ensure_editable(sheet)

    name = (name or "").strip() or default_version_name(sheet)
    version = Version.snapshot(name, sheet.columns, sheet.rows)
    sheet.versions.append(version)
    sheet.touch()

    LOGGER.info(
        "Saved sheet version",
        extra={
            "sheet_id": sheet.id,
            "version_id": version.id,
            "version_name": version.name,
            "rows": len(version.rows),
        },
    )
    return version


def enter_preview(sheet: Sheet, version_id: str) -> Version:
    """Show a saved version in place of live data.

    Raises:
        VersionNotFoundError: If the version is not in the sheet
    """
    version = sheet.get_version(version_id)
    sheet.viewing_version_id = version.id
    return version


def exit_preview(sheet: Sheet) -> None:
    sheet.viewing_version_id = None
