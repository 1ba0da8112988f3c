"""
Tests for the command line interface.
"""

from pathlib import Path

import pytest

from sheetsnap import __version__, cli
from sheetsnap.services.snapshot_service import SnapshotService


@pytest.fixture(autouse=True)
def shared_fonts(monkeypatch: pytest.MonkeyPatch, font_registry) -> None:
    """Build CLI services on the session font registry."""
    monkeypatch.setattr(cli, "SnapshotService", lambda settings: SnapshotService(settings, fonts=font_registry))


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        args = cli.build_parser().parse_args(["-i", "book.xlsx"])

        assert args.input == "book.xlsx"
        assert args.output == "."
        assert args.sheet is None and args.index is None and not args.all

    def test_force_raw_flag(self) -> None:
        assert cli.build_parser().parse_args(["-i", "book.xlsx", "--force-raw"]).force_raw
        assert not cli.build_parser().parse_args(["-i", "book.xlsx"]).force_raw

    def test_selection_is_exclusive(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.build_parser().parse_args(["-i", "book.xlsx", "--sheet", "A", "--all"])

        assert exc_info.value.code == 2

    def test_version(self, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:
    """Tests for the CLI entry point."""

    def test_render_single_sheet(self, sample_excel_file: Path, temp_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Test rendering the first sheet to an explicit file."""
        target = temp_dir / "report.png"

        assert cli.main(["-i", str(sample_excel_file), "-o", str(target)]) == 0

        assert target.exists()
        assert "rendered Report" in capsys.readouterr().out

    def test_render_sheet_by_name_into_directory(self, multi_sheet_excel_file: Path, temp_dir: Path) -> None:
        assert cli.main(["-i", str(multi_sheet_excel_file), "-o", str(temp_dir), "--sheet", "Q3|Q4"]) == 0

        assert (temp_dir / "multi_sheet_Q3-Q4.png").exists()

    def test_render_by_index(self, multi_sheet_excel_file: Path, temp_dir: Path) -> None:
        assert cli.main(["-i", str(multi_sheet_excel_file), "-o", str(temp_dir), "--index", "0"]) == 0

        assert (temp_dir / "multi_sheet_Users.png").exists()

    def test_render_all(self, multi_sheet_excel_file: Path, temp_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Test rendering every non-blank sheet."""
        out_dir = temp_dir / "all"

        assert cli.main(["-i", str(multi_sheet_excel_file), "-o", str(out_dir), "--all"]) == 0

        output = capsys.readouterr().out
        assert "skipped  Empty (blank)" in output
        assert "2 rendered, 1 skipped, 0 failed" in output
        assert sorted(path.name for path in out_dir.iterdir()) == ["multi_sheet_Q3-Q4.png", "multi_sheet_Users.png"]

    def test_gen_demo(self, temp_dir: Path, capsys: pytest.CaptureFixture) -> None:
        """Test writing the demo workbook, twice."""
        target = temp_dir / "demo.xlsx"

        assert cli.main(["--gen-demo", str(target)]) == 0
        assert cli.main(["--gen-demo", str(target)]) == 0

        assert target.exists()
        assert "demo workbook written" in capsys.readouterr().out

    def test_missing_input(self, capsys: pytest.CaptureFixture) -> None:
        assert cli.main([]) == 1

        assert "input workbook is required" in capsys.readouterr().err

    def test_missing_file(self, temp_dir: Path, capsys: pytest.CaptureFixture) -> None:
        assert cli.main(["-i", str(temp_dir / "missing.xlsx")]) == 1

        assert "[FILE_NOT_FOUND]" in capsys.readouterr().err

    def test_unknown_sheet(self, sample_excel_file: Path, temp_dir: Path, capsys: pytest.CaptureFixture) -> None:
        assert cli.main(["-i", str(sample_excel_file), "-o", str(temp_dir), "--sheet", "Nope"]) == 1

        assert "[SHEET_NOT_FOUND]" in capsys.readouterr().err

    @pytest.mark.parametrize("scale", ["0.5", "9"])
    def test_scale_out_of_range(self, sample_excel_file: Path, scale: str, capsys: pytest.CaptureFixture) -> None:
        assert cli.main(["-i", str(sample_excel_file), "--scale", scale]) == 1

        assert "--scale" in capsys.readouterr().err

    def test_force_raw_reaches_service(
        self,
        sample_excel_file: Path,
        temp_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        font_registry,
    ) -> None:
        """Test that --force-raw turns number formatting off for the run."""
        built: list[SnapshotService] = []

        def build(settings) -> SnapshotService:
            built.append(SnapshotService(settings, fonts=font_registry))
            return built[-1]

        monkeypatch.setattr(cli, "SnapshotService", build)

        assert cli.main(["-i", str(sample_excel_file), "-o", str(temp_dir), "--force-raw"]) == 0

        assert built[0].settings.raw_values is True
