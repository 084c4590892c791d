"""HLS playlist rewriting.

Playlists are split into lines and each line is classified by a small tokenizer:

    blank    empty or whitespace only
    tag      starts with ``#EXT``
    comment  any other line starting with ``#``
    uri      everything else

A ``uri`` line is a segment reference when the last component of its path
matches ``SEGMENT_NAME_RE`` (an index number followed by a segment extension).
Key tags (``#EXT-X-KEY``, ``#EXT-X-SESSION-KEY``) reference the key-delivery
endpoint through their quoted ``URI`` attribute. An ``#EXT-X-MAP`` whose URI
names an init segment is routed through the segment endpoint like a media
line. Everything else is emitted unchanged, including line endings.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

from mediagate.core.modules.manifest.models import ManifestRewriteContext
from mediagate.core.modules.manifest.urls import with_token
from mediagate.errors import ManifestCorruptError

PLAYLIST_HEADER = "#EXTM3U"
SEGMENT_NAME_RE = re.compile(r"^[A-Za-z0-9_-]*\d+\.(?:ts|m4s|aac|mp4)$")
INIT_SEGMENT_NAME_RE = re.compile(r"^[A-Za-z0-9_-]*init[A-Za-z0-9_-]*\.(?:mp4|m4s)$")
MAP_TAG = "#EXT-X-MAP:"
KEY_TAGS = ("#EXT-X-KEY:", "#EXT-X-SESSION-KEY:")
URI_ATTRIBUTE_RE = re.compile(r'(?<=[:,])URI="([^"]*)"')


class LineKind(StrEnum):
    BLANK = "blank"
    TAG = "tag"
    COMMENT = "comment"
    URI = "uri"


@dataclass(frozen=True)
class PlaylistLine:
    kind: LineKind
    text: str  # without the line terminator
    crlf: bool = False

    def render(self, text: str | None = None) -> str:
        return (self.text if text is None else text) + ("\r" if self.crlf else "")


def classify_line(text: str) -> LineKind:
    stripped = text.strip().removeprefix("\ufeff")
    if not stripped:
        return LineKind.BLANK
    if stripped.startswith("#EXT"):
        return LineKind.TAG
    if stripped.startswith("#"):
        return LineKind.COMMENT
    return LineKind.URI


def tokenize_playlist(content: str) -> list[PlaylistLine]:
    """Split a playlist into classified lines.

    Raises:
        ManifestCorruptError: If the content is not an HLS playlist
    """
    if "\x00" in content:
        raise ManifestCorruptError

    lines = []
    for raw in content.split("\n"):
        text = raw.removesuffix("\r")
        lines.append(PlaylistLine(kind=classify_line(text), text=text, crlf=raw.endswith("\r")))

    first = next((line for line in lines if line.kind is not LineKind.BLANK), None)
    if first is None or first.text.strip().removeprefix("\ufeff") != PLAYLIST_HEADER:
        raise ManifestCorruptError
    return lines


def split_uri_name(uri: str) -> tuple[str, str]:
    """Return the last path component of ``uri`` and its raw query string."""
    base = uri.strip().partition("#")[0]
    path, _, query = base.partition("?")
    return path.rsplit("/", 1)[-1], query


def is_segment_reference(uri: str) -> bool:
    name, _ = split_uri_name(uri)
    return bool(SEGMENT_NAME_RE.fullmatch(name))


def rewrite_segment_uri(uri: str, context: ManifestRewriteContext) -> str:
    """Point a segment URI at the gated segment endpoint, keeping its query as is."""
    name, query = split_uri_name(uri)
    gated = f"{context.base_segment_path}/{name}"
    return with_token(f"{gated}?{query}" if query else gated, context.token)


def rewrite_key_tag(text: str, context: ManifestRewriteContext) -> str:
    """Set the token on the tag's URI attribute, leaving the rest of the line intact."""
    return URI_ATTRIBUTE_RE.sub(lambda m: f'URI="{with_token(m.group(1), context.token)}"', text, count=1)


def rewrite_map_tag(text: str, context: ManifestRewriteContext) -> str:
    """Route an ``#EXT-X-MAP`` initialization section through the segment endpoint.

    Only URIs whose name looks like an init segment are rewritten; byte-range
    attributes are kept.
    """

    def replace(match: re.Match[str]) -> str:
        name, _ = split_uri_name(match.group(1))
        if not INIT_SEGMENT_NAME_RE.fullmatch(name):
            return match.group(0)
        return f'URI="{rewrite_segment_uri(match.group(1), context)}"'

    return URI_ATTRIBUTE_RE.sub(replace, text, count=1)


def rewrite_hls(content: str, context: ManifestRewriteContext) -> str:
    lines = tokenize_playlist(content)
    output = []
    for line in lines:
        if line.kind is LineKind.URI and is_segment_reference(line.text):
            output.append(line.render(rewrite_segment_uri(line.text, context)))
        elif line.kind is LineKind.TAG and line.text.lstrip().startswith(KEY_TAGS):
            output.append(line.render(rewrite_key_tag(line.text, context)))
        elif line.kind is LineKind.TAG and line.text.lstrip().startswith(MAP_TAG):
            output.append(line.render(rewrite_map_tag(line.text, context)))
        else:
            output.append(line.render())
    return "\n".join(output)
