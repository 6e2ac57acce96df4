"""Tests for the command line interface."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from chordbook import __version__
from chordbook.cli.main import main
from chordbook.config import configure


@pytest.fixture(autouse=True)
def quiet_settings(tmp_path: Path):
    """Reset global settings for each test."""
    configure(_env_file=None, show_progress=False, template_dir=tmp_path / "templates")


@pytest.fixture
def manifest_file(tmp_path: Path, write_songs) -> Path:
    """Write a TOML manifest over two songs."""

    def write(songs: dict[str, str]) -> Path:
        write_songs(**songs)
        path = tmp_path / "chordbook.toml"
        path.write_text(
            'songs = ["songs/*.cho"]\n'
            "[[targets]]\n"
            'name = "web"\n'
            'file = "book.html"\n'
            "[[targets]]\n"
            'name = "data"\n'
            'format = "json"\n'
            'mode = "song"\n',
            encoding="utf-8",
        )
        return path

    return write


class TestCli:
    """Tests for the chordbook command group."""

    def test_version(self):
        """--version prints the program version."""
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_build(self, manifest_file, tmp_path: Path):
        """build writes every artifact to the output directory."""
        manifest = manifest_file({"a": "{title: A}\n[C]la", "b": "{title: B}\n[G]la"})
        out = tmp_path / "out"
        result = CliRunner().invoke(main, ["build", str(manifest), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "Build complete" in result.output
        assert (out / "book.html").is_file()
        assert (out / "data" / "songs" / "a.json").is_file()

    def test_build_failure(self, manifest_file, tmp_path: Path, broken_song):
        """A failing song fails the build under the default policy."""
        manifest = manifest_file({"a": "{title: A}", "broken": broken_song})
        out = tmp_path / "out"
        result = CliRunner().invoke(main, ["build", str(manifest), "-o", str(out)])
        assert result.exit_code == 1
        assert "Build failed" in result.output
        assert not out.exists()

    def test_build_best_effort(self, manifest_file, tmp_path: Path, broken_song):
        """--best-effort skips the failing song."""
        manifest = manifest_file({"a": "{title: A}", "broken": broken_song})
        out = tmp_path / "out"
        result = CliRunner().invoke(
            main, ["build", str(manifest), "-o", str(out), "--best-effort", "--jobs", "1"]
        )
        assert result.exit_code == 0, result.output
        assert "songs/broken" in result.output
        assert (out / "data" / "songs" / "a.json").is_file()
        assert not (out / "data" / "songs" / "broken.json").exists()

    def test_missing_manifest(self, tmp_path: Path):
        """A missing manifest is reported."""
        result = CliRunner().invoke(main, ["build", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_invalid_manifest(self, tmp_path: Path):
        """An invalid manifest is reported without a traceback."""
        path = tmp_path / "chordbook.toml"
        path.write_text("songs = []\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["build", str(path)])
        assert result.exit_code == 1
        assert "Invalid manifest" in result.output

    def test_info(self):
        """info lists the configuration and notation systems."""
        result = CliRunner().invoke(main, ["info"])
        assert result.exit_code == 0
        assert "Failure policy: fail-fast" in result.output
        assert "german" in result.output
        assert "solfege-flat" in result.output
