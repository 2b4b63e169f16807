from __future__ import annotations

from app.core.errors import InvalidArgumentError

TAG_SIGIL = "#"
PATH_SEPARATOR = "/"


def normalize_tag_path(raw: str) -> str:
    """Return the canonical path for a raw tag: `work/api` -> `/work/api`."""
    path = raw.strip()
    if not path.startswith(PATH_SEPARATOR):
        path = PATH_SEPARATOR + path
    return path


def path_segments(path: str) -> list[str]:
    """Split a tag path into segments; an all-slash path has none."""
    trimmed = path.strip(PATH_SEPARATOR)
    if not trimmed:
        return []
    return trimmed.split(PATH_SEPARATOR)


def is_well_formed_tag_path(path: str) -> bool:
    """True for a canonical path with at least one segment and no empty ones."""
    if not path.startswith(PATH_SEPARATOR) or any(ch.isspace() for ch in path):
        return False
    segments = path[1:].split(PATH_SEPARATOR)
    return all(segments)


def canonical_tag_path(raw: str | None, *, field: str = "tag path") -> str:
    """Validate a tag path received from a caller and return its canonical form.

    Raises:
        InvalidArgumentError: if the path is empty, contains whitespace, or has
            empty segments (including a trailing slash).
    """
    if raw is None or not raw.strip():
        raise InvalidArgumentError(f"{field} cannot be empty")
    path = normalize_tag_path(raw)
    if any(ch.isspace() for ch in path):
        raise InvalidArgumentError(f"invalid {field}: {raw!r} contains whitespace")
    if not is_well_formed_tag_path(path):
        raise InvalidArgumentError(f"invalid {field}: {raw!r} has empty segments")
    return path


def tag_marker(path: str) -> str:
    """Return the text that marks a tag in memo content: `/work/api` -> `#work/api`."""
    return TAG_SIGIL + path.removeprefix(PATH_SEPARATOR)


def parent_tag_path(path: str) -> str | None:
    """Return the path without its last segment, or None for a top-level path."""
    last_slash = path.rfind(PATH_SEPARATOR)
    if last_slash <= 0:
        return None
    return path[:last_slash]


def is_direct_child(path: str, candidate: str) -> bool:
    """True if `candidate` sits exactly one level below `path`."""
    prefix = path + PATH_SEPARATOR
    if candidate == path or not candidate.startswith(prefix):
        return False
    return PATH_SEPARATOR not in candidate[len(prefix):]


def is_same_or_descendant(path: str, candidate: str) -> bool:
    return candidate == path or candidate.startswith(path + PATH_SEPARATOR)
