"""Document utilities.

URI/path conversion, range slicing and offset mapping for source text read
from disk. Columns are counted in Python characters; servers negotiating
UTF-16 positions agree with this for BMP-only sources.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import unquote, urlparse

from lspgraph.config.defaults import DEFAULT_LANGUAGE_ID, LANGUAGE_IDS
from lspgraph.models import Position, Range

# LSP line terminators
LINE_BREAK = re.compile(r"\r\n|\r|\n")


def normalise_path(path: str | Path) -> Path:
    """Expand ``~`` and make the path absolute."""
    if isinstance(path, str):
        path = Path(path)
    return path.expanduser().resolve()


def path_to_uri(path: str | Path) -> str:
    return normalise_path(path).as_uri()


def uri_to_path(uri: str) -> Path:
    """Convert a ``file://`` URI to a local path.

    Raises:
        ValueError: for non-file URIs.
    """
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        raise ValueError(f"Not a file URI: {uri}")
    path = unquote(parsed.path)
    # file:///C:/x on Windows
    if len(path) > 2 and path[0] == "/" and path[2] == ":":
        path = path[1:]
    return Path(path)


def uri_stem(uri: str) -> str:
    """Base name of the file a URI points at, without extension."""
    return Path(unquote(urlparse(uri).path)).stem or uri


def language_id_for(path: str | Path) -> str:
    return LANGUAGE_IDS.get(Path(path).suffix.lower(), DEFAULT_LANGUAGE_ID)


def _line_bounds(text: str) -> Tuple[List[int], List[int]]:
    """Start and end offsets of every line, line breaks excluded."""
    starts = [0]
    ends = []
    for match in LINE_BREAK.finditer(text):
        ends.append(match.start())
        starts.append(match.end())
    ends.append(len(text))
    return starts, ends


def position_to_offset(text: str, position: Position) -> int:
    """Absolute character offset of ``position`` in ``text``.

    Only ``\\n``, ``\\r\\n`` and ``\\r`` end a line. Positions past the end of
    a line or of the text are clamped.
    """
    starts, ends = _line_bounds(text)
    if position.line >= len(starts):
        return len(text)
    return min(starts[position.line] + position.character, ends[position.line])


def slice_text(text: str, rng: Optional[Range]) -> str:
    """Return the part of ``text`` covered by ``rng`` (all of it for None)."""
    if rng is None:
        return text
    start = position_to_offset(text, rng.start)
    end = position_to_offset(text, rng.end)
    return text[start:end]


def offset_to_position(text: str, offset: int, origin: Position = Position(0, 0)) -> Position:
    """Map an offset inside ``text`` to a document position.

    ``text`` is assumed to start at ``origin`` in the document, so columns on
    its first line are shifted by ``origin.character``.
    """
    head = text[:offset]
    breaks = list(LINE_BREAK.finditer(head))
    if not breaks:
        return Position(origin.line, origin.character + len(head))
    return Position(origin.line + len(breaks), len(head) - breaks[-1].end())
