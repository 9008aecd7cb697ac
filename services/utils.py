import json, re
from typing import Any, Iterator, Optional

_FENCE = re.compile(r"```[ \t]*json[ \t]*\n?(.*?)```", re.S | re.I)


def _balanced_end(text: str, start: int) -> int:
    """Index of the brace closing text[start], or -1. Braces inside strings don't count."""
    depth = 0
    in_str = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return i
    return -1


def iter_json_objects(text: str) -> Iterator[Any]:
    """Yield each top-level {...} substring of text that parses as JSON, in order."""
    pos = 0
    while True:
        s = text.find('{', pos)
        if s < 0:
            return
        end = _balanced_end(text, s)
        if end < 0:
            pos = s + 1
            continue
        try:
            obj = json.loads(text[s:end + 1])
        except ValueError:
            pos = s + 1
            continue
        yield obj
        pos = end + 1


def fenced_json(text: str) -> Optional[str]:
    m = _FENCE.search(text)
    return m.group(1).strip() if m else None
