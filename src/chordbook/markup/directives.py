"""The closed set of recognized directives."""

# alias -> canonical name
DIRECTIVE_ALIASES = {
    "title": "title",
    "t": "title",
    "subtitle": "subtitle",
    "st": "subtitle",
    "artist": "artist",
    "composer": "composer",
    "lyricist": "lyricist",
    "album": "album",
    "year": "year",
    "key": "key",
    "capo": "capo",
    "tempo": "tempo",
    "time": "time",
    "transpose": "transpose",
    "notation": "notation",
    "comment": "comment",
    "c": "comment",
    "comment_italic": "comment_italic",
    "ci": "comment_italic",
    "chorus": "chorus",
    "start_of_chorus": "start_of_chorus",
    "soc": "start_of_chorus",
    "end_of_chorus": "end_of_chorus",
    "eoc": "end_of_chorus",
    "start_of_verse": "start_of_verse",
    "sov": "start_of_verse",
    "end_of_verse": "end_of_verse",
    "eov": "end_of_verse",
    "start_of_bridge": "start_of_bridge",
    "sob": "start_of_bridge",
    "end_of_bridge": "end_of_bridge",
    "eob": "end_of_bridge",
}

REQUIRES_VALUE = frozenset(
    {
        "title",
        "subtitle",
        "artist",
        "composer",
        "lyricist",
        "album",
        "year",
        "key",
        "capo",
        "tempo",
        "time",
        "transpose",
        "notation",
        "comment",
        "comment_italic",
    }
)


def canonical_name(key: str) -> str | None:
    """Canonical directive name, or None for an unknown directive."""
    return DIRECTIVE_ALIASES.get(key.strip().lower())
