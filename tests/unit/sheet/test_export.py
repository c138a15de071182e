"""Unit tests for delimited-text export."""

from litsheet.models.sheet import Cell
from litsheet.services.sheet import versioning
from litsheet.services.sheet.export import export_sheet


class TestExport:
    def test_csv_layout(self, sample_sheet):
        sample_sheet.get_row("row-1").cells["col-findings"] = Cell(value='Faster, "much" faster')

        lines = export_sheet(sample_sheet).splitlines()

        assert lines[0] == "Paper,Key Findings,Participants (N)"
        assert lines[1] == 'Gesture Typing on Watches,"Faster, ""much"" faster",'
        assert lines[2] == "Voice Assistants for Older Adults,Prior finding,24"
        assert lines[3] == "Haptic Feedback in VR,,"

    def test_tsv(self, sample_sheet):
        text = export_sheet(sample_sheet, delimiter="\t")
        assert text.splitlines()[0] == "Paper\tKey Findings\tParticipants (N)"

    def test_mismatched_value_exported_empty(self, sample_sheet):
        sample_sheet.get_row("row-2").cells["col-n"].value = "twenty-four"
        assert export_sheet(sample_sheet).splitlines()[2].endswith("Prior finding,")

    def test_exports_previewed_version(self, sample_sheet):
        version = versioning.save_version(sample_sheet)
        sample_sheet.get_row("row-2").cells["col-findings"].value = "Live edit"

        versioning.enter_preview(sample_sheet, version.id)

        assert "Prior finding" in export_sheet(sample_sheet)
        assert "Live edit" not in export_sheet(sample_sheet)
