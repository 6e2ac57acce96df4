"""Tests for output targets, manifests and manifest loading."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from chordbook.errors import ManifestError
from chordbook.manifest import load_manifest
from chordbook.models.project import Manifest, OutputFormat, OutputTarget, song_id_for


class TestOutputTarget:
    """Tests for OutputTarget."""

    def test_format_from_extension(self):
        """Format auto-detection uses the file extension."""
        assert OutputTarget(name="t", file="book.tex").output_format is OutputFormat.TEX
        assert OutputTarget(name="t", file="book.htm").output_format is OutputFormat.HTML
        assert OutputTarget(name="t").output_format is OutputFormat.HTML

    def test_unknown_extension(self):
        """An unknown extension without an explicit format is rejected."""
        with pytest.raises(ValidationError):
            OutputTarget(name="t", file="book.pdf")
        assert OutputTarget(name="t", file="book.pdf", format="tex").extension == "tex"

    def test_default_template(self):
        """Each format has a built-in template."""
        assert OutputTarget(name="t", file="x.tex").template_id == "default.tex.j2"
        assert OutputTarget(name="t", template="mine.j2").template_id == "mine.j2"

    def test_artifact_names(self):
        """File patterns expand target, song and extension."""
        assert OutputTarget(name="web").artifact_name() == "web.html"
        song_mode = OutputTarget(name="web", mode="song")
        assert song_mode.artifact_name("songs/a") == "web/songs/a.html"
        pattern = OutputTarget(name="web", mode="song", file="out/{song}.{ext}")
        assert pattern.artifact_name("a") == "out/a.html"

    def test_ext_placeholder_resolves_to_html(self):
        """A pattern ending in {ext} resolves like a target without a file."""
        target = OutputTarget(name="web", file="book.{ext}")
        assert target.output_format is OutputFormat.HTML
        assert target.artifact_name() == "book.html"
        tex = OutputTarget(name="print", file="book.{ext}", format="tex")
        assert tex.artifact_name() == "book.tex"

    @pytest.mark.parametrize(
        "pattern", ["{title}.html", "{}.html", "{song!r}.html", "{song:>8}.html", "{song.html"]
    )
    def test_unknown_placeholders(self, pattern):
        """Only {target}, {song} and {ext} may appear in a file pattern."""
        with pytest.raises(ValidationError):
            OutputTarget(name="web", mode="song", file=pattern)

    def test_song_mode_needs_song_placeholder(self):
        """Per-song artifacts must have distinct names."""
        with pytest.raises(ValidationError):
            OutputTarget(name="web", mode="song", file="all.html")

    def test_aliases(self):
        """camelCase keys are accepted."""
        target = OutputTarget.model_validate(
            {
                "name": "x",
                "templateId": "t.j2",
                "transposeSemitones": 3,
                "notationSystem": "German",
                "failurePolicy": "best-effort",
            }
        )
        assert target.template == "t.j2"
        assert target.transpose == 3
        assert target.notation == "german"
        assert target.failure_policy == "best-effort"

    def test_unknown_notation(self):
        """Notation names are validated."""
        with pytest.raises(ValidationError):
            OutputTarget(name="x", notation="klingon")

    def test_song_transpose(self):
        """Per-song transposition replaces the target's."""
        target = OutputTarget(name="x", transpose=2, song_transpose={"a": -1})
        assert target.semitones_for("a") == -1
        assert target.semitones_for("b") == 2


class TestManifest:
    """Tests for Manifest validation."""

    def test_song_ids(self):
        """Song ids are posix paths without suffix."""
        assert song_id_for(Path("songs/a.cho")) == "songs/a"
        manifest = Manifest.from_mapping({"songs": ["a.cho", "x/b.pro"], "targets": [{"name": "t"}]})
        assert manifest.song_ids == ["a", "x/b"]

    def test_target_songs_keep_manifest_order(self):
        """Subsets follow manifest order, not the target's."""
        manifest = Manifest.from_mapping(
            {"songs": ["a.cho", "b.cho", "c.cho"], "targets": [{"name": "t", "songs": ["c", "a"]}]}
        )
        assert manifest.target_songs(manifest.targets[0]) == ["a", "c"]

    @pytest.mark.parametrize(
        "data",
        [
            {"songs": ["a.cho"], "targets": []},
            {"songs": ["a.cho"], "targets": [{"name": "t"}, {"name": "t"}]},
            {"songs": ["a.cho", "a.pro"], "targets": [{"name": "t"}]},
            {"songs": ["a.cho"], "targets": [{"name": "t", "songs": ["zzz"]}]},
            {"songs": ["a.cho"], "targets": [{"name": "t", "song_transpose": {"zzz": 1}}]},
            {"songs": ["a.cho"], "targets": [{"name": "t"}], "max_failures": -1},
            {"songs": ["a.cho"], "targets": [{"name": "t"}], "bogus": 1},
            {"songs": ["a.cho"], "targets": [{"name": "web", "file": "{title}.html"}]},
        ],
    )
    def test_invalid(self, data):
        """Structural problems raise ManifestError."""
        with pytest.raises(ManifestError):
            Manifest.from_mapping(data)

    def test_direct_construction_raises_validation_error(self):
        """Only from_mapping turns validation failures into ManifestError."""
        with pytest.raises(ValidationError):
            Manifest(songs=[Path("a.cho")], targets=[])
        with pytest.raises(ValidationError):
            OutputTarget(name="web", file="{title}.html")
        with pytest.raises(ManifestError, match="title"):
            Manifest.from_mapping({"targets": [{"name": "web", "file": "{title}.html"}]})

    def test_policy_for(self):
        """Target policy beats project policy, which beats the default."""
        manifest = Manifest.from_mapping(
            {
                "targets": [{"name": "a", "failure_policy": "fail-fast"}, {"name": "b"}],
                "failure_policy": "best-effort",
            }
        )
        a, b = manifest.targets
        assert manifest.policy_for(a, "best-effort") == "fail-fast"
        assert manifest.policy_for(b, "fail-fast") == "best-effort"

    def test_resolve(self, tmp_path: Path):
        """Relative song paths resolve against the manifest directory."""
        manifest = Manifest.from_mapping({"targets": [{"name": "t"}]}, base_dir=tmp_path)
        assert manifest.resolve(Path("a.cho")) == tmp_path / "a.cho"


class TestLoadManifest:
    """Tests for load_manifest."""

    def test_toml_with_glob(self, tmp_path: Path, write_songs):
        """TOML manifests expand song patterns in sorted order."""
        write_songs(b="{title: B}", a="{title: A}")
        path = tmp_path / "chordbook.toml"
        path.write_text(
            'songs = ["songs/*.cho"]\n'
            "[book]\n"
            'title = "My Book"\n'
            "[[targets]]\n"
            'name = "web"\n'
            'file = "book.html"\n',
            encoding="utf-8",
        )
        manifest = load_manifest(path)
        assert manifest.songs == [Path("songs/a.cho"), Path("songs/b.cho")]
        assert manifest.book == {"title": "My Book"}
        assert manifest.base_dir == tmp_path

    def test_json(self, tmp_path: Path, write_songs):
        """JSON manifests accept camelCase keys."""
        write_songs(a="{title: A}")
        path = tmp_path / "book.json"
        path.write_text(
            json.dumps(
                {
                    "songs": ["songs/a.cho"],
                    "outputs": [{"name": "data", "format": "json", "notationSystem": "solfege"}],
                    "failurePolicy": "best-effort",
                }
            ),
            encoding="utf-8",
        )
        manifest = load_manifest(path)
        assert manifest.targets[0].notation == "solfege"
        assert manifest.failure_policy == "best-effort"

    def test_pattern_without_matches(self, tmp_path: Path):
        """A song pattern must match something."""
        path = tmp_path / "chordbook.toml"
        path.write_text('songs = ["songs/*.cho"]\n[[targets]]\nname = "web"\n', encoding="utf-8")
        with pytest.raises(ManifestError, match="matches no files"):
            load_manifest(path)

    def test_unreadable(self, tmp_path: Path):
        """Missing and malformed manifests raise ManifestError."""
        with pytest.raises(ManifestError):
            load_manifest(tmp_path / "missing.toml")
        bad = tmp_path / "bad.toml"
        bad.write_text("songs = [", encoding="utf-8")
        with pytest.raises(ManifestError):
            load_manifest(bad)
