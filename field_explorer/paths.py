from __future__ import annotations

import re
from typing import List, NamedTuple, Tuple, Union

PATH_SEP = '~>'
SAMPLE_MARKER = '[0]'

_INDEX_RE = re.compile(r'\[(\d+)\]')


class Key(NamedTuple):
    name: str


class Index(NamedTuple):
    position: int


Token = Union[Key, Index]
SAMPLE_INDEX = Index(0)


def join_path(parent: str, key: str) -> str:
    """Append a key segment to a path.

    Keys are not escaped: a key that contains the separator or a `[N]`
    marker will split into extra segments when the path is parsed again.
    """
    if not isinstance(key, str):
        key = str(key)
    return f"{parent}{PATH_SEP}{key}" if parent else key


def mark_sample(path: str) -> str:
    return f"{path}{SAMPLE_MARKER}"


def has_marker(path: str) -> bool:
    return isinstance(path, str) and SAMPLE_MARKER in path


def parse_path(path: str) -> List[Token]:
    """Split a path string into Key/Index tokens.

    Every `[N]` marker becomes its own Index token and empty segments are
    dropped, so `prices[0]~>close` parses to
    `[Key('prices'), Index(0), Key('close')]`.
    """
    if path is None:
        return []
    if not isinstance(path, str):
        path = str(path)

    tokens: List[Token] = []
    normalized = _INDEX_RE.sub(lambda m: f"{PATH_SEP}[{m.group(1)}]{PATH_SEP}", path)
    for segment in normalized.split(PATH_SEP):
        if not segment:
            continue
        match = _INDEX_RE.fullmatch(segment)
        if match:
            tokens.append(Index(int(match.group(1))))
        else:
            tokens.append(Key(segment))
    return tokens


def format_path(tokens: List[Token]) -> str:
    out = ''
    for token in tokens:
        if isinstance(token, Index):
            out += f"[{token.position}]"
        else:
            out = join_path(out, token.name)
    return out


def split_at_marker(path: str) -> Tuple[str, str]:
    """Split a path at its first `[0]` marker.

    Returns (root, relative) where root addresses the repeating container and
    relative addresses a value inside each element. Paths without a marker
    return (path, '').
    """
    if not has_marker(path):
        return path, ''
    root, _, rest = path.partition(SAMPLE_MARKER)
    if root.endswith(PATH_SEP):
        root = root[:-len(PATH_SEP)]
    if rest.startswith(PATH_SEP):
        rest = rest[len(PATH_SEP):]
    return root, rest


def key_segments(path: str) -> List[str]:
    return [t.name for t in parse_path(path) if isinstance(t, Key)]
