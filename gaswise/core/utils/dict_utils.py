from typing import Mapping, Optional, Sequence, Union


def _read_path(node: object, path: Sequence[Union[str, int]]) -> Optional[object]:
    """
    Walk decoded JSON (mappings and lists) along `path`.

    Returns None as soon as a key is absent, an index is out of range or the
    current node has the wrong container type, so upstream parsers can report
    the missing field themselves.
    """
    current: object = node
    for part in path:
        if isinstance(part, int):
            if not isinstance(current, list) or not 0 <= part < len(current):
                return None
            current = current[part]
        elif isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return None
    return current
