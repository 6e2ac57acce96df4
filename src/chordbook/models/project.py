"""Project manifest models for Chordbook.

The manifest file format is owned by whoever loads it; these models only
validate the structure the build consumes. Field aliases accept both the
snake_case names used in TOML manifests and camelCase names used by JSON
producers.
"""

from enum import Enum
from pathlib import Path, PurePath
from string import Formatter
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from chordbook.errors import ManifestError
from chordbook.models.pitch import get_notation

FailurePolicy = Literal["fail-fast", "best-effort"]


class OutputFormat(str, Enum):
    """Artifact format. AUTO resolves from the artifact file extension."""

    AUTO = "auto"
    HTML = "html"
    TEX = "tex"
    JSON = "json"


_EXTENSIONS = {
    ".html": OutputFormat.HTML,
    ".htm": OutputFormat.HTML,
    ".tex": OutputFormat.TEX,
    ".json": OutputFormat.JSON,
}

_PLACEHOLDERS = {"target", "song", "ext"}


def _pattern_fields(pattern: str) -> set[str]:
    """Placeholder names of a file pattern; raises ValueError on stray braces."""
    fields = set()
    for _, field_name, format_spec, conversion in Formatter().parse(pattern):
        if field_name is None:
            continue
        if format_spec or conversion:
            raise ValueError(f"file pattern {pattern!r}: placeholders take no format options")
        fields.add(field_name)
    return fields


class OutputTarget(BaseModel):
    """A named rendering configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str = Field(min_length=1)
    template: str | None = Field(
        default=None,
        validation_alias=AliasChoices("template", "templateId", "template_id"),
        description="Template id; defaults to the built-in template of the format",
    )
    format: OutputFormat = OutputFormat.AUTO
    file: str | None = Field(
        default=None,
        description="Artifact name pattern using {target}, {song} and {ext}",
    )
    mode: Literal["book", "song"] = Field(
        default="book",
        description="book: one artifact with every song; song: one artifact per song",
    )
    notation: str = Field(
        default="english",
        validation_alias=AliasChoices("notation", "notationSystem", "notation_system"),
    )
    alt_notation: str | None = Field(
        default=None,
        validation_alias=AliasChoices("alt_notation", "altNotation"),
    )
    transpose: int = Field(
        default=0,
        validation_alias=AliasChoices("transpose", "transposeSemitones", "transpose_semitones"),
    )
    song_transpose: dict[str, int] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("song_transpose", "songTranspose"),
        description="Per-song transposition, replacing `transpose` for that song",
    )
    songs: list[str] | None = Field(
        default=None,
        description="Subset of song ids rendered by this target (default: all)",
    )
    failure_policy: FailurePolicy | None = Field(
        default=None,
        validation_alias=AliasChoices("failure_policy", "failurePolicy"),
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("notation", "alt_notation")
    @classmethod
    def _known_notation(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return get_notation(value).name

    @model_validator(mode="after")
    def _check_output(self) -> "OutputTarget":
        self.output_format  # noqa: B018 - raises on an unresolvable format
        if self.file is not None:
            fields = _pattern_fields(self.file)
            unknown = sorted(fields - _PLACEHOLDERS)
            if unknown:
                raise ValueError(
                    f"target {self.name!r}: unknown placeholder(s) in file: "
                    f"{', '.join(unknown)}. Use {{target}}, {{song}} or {{ext}}"
                )
            if self.mode == "song" and "song" not in fields:
                raise ValueError(f"target {self.name!r}: song mode needs '{{song}}' in file")
        return self

    @property
    def output_format(self) -> OutputFormat:
        if self.format is not OutputFormat.AUTO:
            return self.format
        if self.file is None:
            return OutputFormat.HTML
        suffix = PurePath(self.file).suffix.lower()
        if "{ext}" in suffix:
            return OutputFormat.HTML
        if suffix not in _EXTENSIONS:
            raise ValueError(
                f"target {self.name!r}: unknown or unsupported output format {suffix!r}. "
                "Hint: specify it with format = ..."
            )
        return _EXTENSIONS[suffix]

    @property
    def extension(self) -> str:
        return self.output_format.value

    @property
    def template_id(self) -> str:
        if self.template is not None:
            return self.template
        return f"default.{self.extension}.j2"

    def semitones_for(self, song_id: str) -> int:
        return self.song_transpose.get(song_id, self.transpose)

    def artifact_name(self, song_id: str | None = None) -> str:
        if self.file is not None:
            pattern = self.file
        elif self.mode == "song":
            pattern = "{target}/{song}.{ext}"
        else:
            pattern = "{target}.{ext}"
        return pattern.format(target=self.name, song=song_id or "", ext=self.extension)


def song_id_for(path: Path) -> str:
    """Stable song identifier: the manifest path without its suffix."""
    return PurePath(path).with_suffix("").as_posix()


class Manifest(BaseModel):
    """The songs and output targets of one project.

    Build manifests through `from_mapping` (or `load_manifest`), which
    reports invalid data as ManifestError. Constructing the models directly
    raises pydantic's ValidationError instead.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    songs: list[Path] = Field(default_factory=list)
    targets: list[OutputTarget] = Field(
        min_length=1,
        validation_alias=AliasChoices("targets", "output", "outputs"),
    )
    book: dict[str, Any] = Field(default_factory=dict)
    failure_policy: FailurePolicy | None = Field(
        default=None,
        validation_alias=AliasChoices("failure_policy", "failurePolicy"),
    )
    max_failures: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("max_failures", "maxFailures"),
    )
    base_dir: Path = Path(".")

    @model_validator(mode="after")
    def _check_references(self) -> "Manifest":
        names = [target.name for target in self.targets]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate target names: {', '.join(duplicates)}")

        ids = self.song_ids
        duplicates = sorted({song for song in ids if ids.count(song) > 1})
        if duplicates:
            raise ValueError(f"duplicate songs: {', '.join(duplicates)}")

        known = set(ids)
        for target in self.targets:
            referenced = list(target.songs or []) + list(target.song_transpose)
            unknown = sorted(set(referenced) - known)
            if unknown:
                raise ValueError(
                    f"target {target.name!r} references unknown songs: {', '.join(unknown)}"
                )
        return self

    @classmethod
    def from_mapping(cls, data: dict[str, Any], base_dir: Path | None = None) -> "Manifest":
        """Validate plain manifest data, raising ManifestError."""
        if base_dir is not None:
            data = {**data, "base_dir": base_dir}
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest: {e}") from e

    @property
    def song_ids(self) -> list[str]:
        return [song_id_for(path) for path in self.songs]

    def resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.base_dir / path

    def target_songs(self, target: OutputTarget) -> list[str]:
        """Song ids a target renders, in manifest order."""
        if target.songs is None:
            return self.song_ids
        wanted = set(target.songs)
        return [song for song in self.song_ids if song in wanted]

    def policy_for(self, target: OutputTarget | None, default: FailurePolicy) -> FailurePolicy:
        if target is not None and target.failure_policy is not None:
            return target.failure_policy
        return self.failure_policy or default
