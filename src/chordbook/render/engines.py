"""Template engines.

The build treats an engine as an opaque ``render(template_id, data) ->
bytes`` call. Template syntax never leaks into the rest of the pipeline.
"""

import hashlib
import json
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import Any

import jinja2
from markupsafe import Markup

from chordbook.errors import TemplateError
from chordbook.models.project import OutputFormat

DEFAULT_DPI = 144.0
MM_PER_INCH = 25.4

_LATEX_SPECIAL = {
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "[": r"{\lbrack}",
    "]": r"{\rbrack}",
    "~": r"{\textasciitilde}",
    "^": r"{\textasciicircum}",
    "\\": r"{\textbackslash}",
    # " combines with neighbouring characters in some fonts
    '"': "''",
}


def latex_escape(value: Any, pre_spaces: bool = False) -> str:
    """Escape text for LaTeX; ``pre_spaces`` keeps spaces as ``~``."""
    if isinstance(value, Markup):
        return str(value)
    text = "" if value is None else str(value)
    out = []
    for char in text:
        if char == " " and pre_spaces:
            out.append("~")
        else:
            out.append(_LATEX_SPECIAL.get(char, char))
    return "".join(out)


def latex_filter(value: Any) -> Markup:
    return Markup(latex_escape(value))


def pre_escape(value: Any) -> Markup:
    return Markup(latex_escape(value, pre_spaces=True))


@lru_cache(maxsize=128)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error:
        return None


def matches(value: Any, pattern: str) -> bool:
    """Regex search; an invalid pattern never matches."""
    regex = _compile(pattern)
    return regex is not None and regex.search(str(value)) is not None


@jinja2.pass_context
def px2mm(context: jinja2.runtime.Context, pixels: float) -> float:
    """Convert pixels to millimetres using the target's ``dpi`` metadata."""
    output = context.get("output") or {}
    dpi = (output.get("metadata") or {}).get("dpi", DEFAULT_DPI)
    try:
        return float(pixels) / float(dpi) * MM_PER_INCH
    except (TypeError, ValueError, ZeroDivisionError) as e:
        raise jinja2.TemplateRuntimeError(
            f"px2mm cannot convert {pixels!r} at {dpi!r} dpi: {e}"
        ) from e


class TemplateEngine(ABC):
    """Renders a data tree with a named template."""

    @abstractmethod
    def render(self, template_id: str, data: dict[str, Any]) -> bytes:
        """Render ``data`` with ``template_id``.

        Raises:
            TemplateError: If the template is missing or fails.
        """

    def template_path(self, template_id: str) -> Path | None:
        """File backing a template, if the engine knows one."""
        return None

    def digest(self, template_id: str) -> str | None:
        """Digest of everything a render with ``template_id`` depends on.

        None means the engine cannot tell, and the render always runs.
        """
        return None


class JinjaTemplateEngine(TemplateEngine):
    """Jinja2 engine with project templates shadowing the built-in ones."""

    def __init__(self, template_dir: Path | None, output_format: OutputFormat) -> None:
        self.template_dir = template_dir
        self.output_format = output_format

        loaders: list[jinja2.BaseLoader] = []
        if template_dir is not None:
            loaders.append(jinja2.FileSystemLoader(str(template_dir)))
        loaders.append(jinja2.PackageLoader("chordbook.render", "templates"))

        options: dict[str, Any] = {}
        if output_format is OutputFormat.TEX:
            options["finalize"] = latex_escape
        else:
            options["autoescape"] = jinja2.select_autoescape(
                enabled_extensions=("html", "htm", "xml", "j2"),
                default_for_string=True,
            )

        self.env = jinja2.Environment(
            loader=jinja2.ChoiceLoader(loaders),
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            **options,
        )
        self.env.filters["latex"] = latex_filter
        self.env.filters["pre"] = pre_escape
        self.env.filters["px2mm"] = px2mm
        self.env.tests["matches"] = matches
        self.env.filters["matches"] = matches

    def template_path(self, template_id: str) -> Path | None:
        if self.template_dir is not None:
            candidate = self.template_dir / template_id
            if candidate.is_file():
                return candidate
        builtin = Path(__file__).parent / "templates" / template_id
        return builtin if builtin.is_file() else None

    def digest(self, template_id: str) -> str | None:
        # Templates may include or extend each other, so hash every file
        # the loaders can see once the requested one is known to exist.
        if self.template_path(template_id) is None:
            return None
        sha = hashlib.sha256(self.output_format.value.encode("utf-8"))
        roots = [Path(__file__).parent / "templates"]
        if self.template_dir is not None and self.template_dir.is_dir():
            roots.insert(0, self.template_dir)
        for root in roots:
            for path in sorted(p for p in root.rglob("*") if p.is_file()):
                sha.update(path.relative_to(root).as_posix().encode("utf-8"))
                sha.update(b"\0")
                sha.update(path.read_bytes())
            sha.update(b"\1")
        return sha.hexdigest()

    def render(self, template_id: str, data: dict[str, Any]) -> bytes:
        try:
            template = self.env.get_template(template_id)
            return template.render(data).encode("utf-8")
        except jinja2.TemplateError as e:
            raise TemplateError(template_id, str(e) or type(e).__name__) from e


class JsonEngine(TemplateEngine):
    """Dumps the data tree as JSON; the template id is ignored."""

    def digest(self, template_id: str) -> str | None:
        return "json"

    def render(self, template_id: str, data: dict[str, Any]) -> bytes:
        try:
            text = json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise TemplateError(template_id, f"data is not JSON serializable: {e}") from e
        return (text + "\n").encode("utf-8")


def create_engine(output_format: OutputFormat, template_dir: Path | None) -> TemplateEngine:
    """Engine for an output format."""
    if output_format is OutputFormat.JSON:
        return JsonEngine()
    return JinjaTemplateEngine(template_dir, output_format)
