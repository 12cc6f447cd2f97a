from typing import Final, Tuple


CANONICAL_STATES: Final[Tuple[str, ...]] = ("todo", "progress", "done", "archived")

_ALIASES: Final[dict] = {
    "in-progress": "progress",
    "in_progress": "progress",
    "doing": "progress",
    "active": "progress",
    "completed": "done",
    "complete": "done",
}


def normalize_lifecycle_state(value: str, *, allow_unknown: bool = False) -> str:
    """Normalize lifecycle state input to a canonical state code.

    Canonical states: todo, progress, done, archived.

    When allow_unknown=True, returns the normalized token (lowercased, trimmed)
    even if it is not a known state, so custom workflow states survive.
    """
    token = (value or "").strip().lower()
    if not token:
        return token
    token = _ALIASES.get(token, token)
    if token in CANONICAL_STATES:
        return token
    if allow_unknown:
        return token
    raise ValueError(f"Invalid lifecycle state: {value!r}")


def canonical_state_id(lifecycle_state: str, archived: bool = False) -> str:
    """Return the ranking/filter bucket for a task row.

    Archived wins over the stored lifecycle state; unknown or empty states
    fall back to todo.
    """
    if archived:
        return "archived"
    token = normalize_lifecycle_state(lifecycle_state, allow_unknown=True)
    if token in CANONICAL_STATES:
        return token
    return "todo"


def is_known_state(value: str) -> bool:
    try:
        normalize_lifecycle_state(value)
    except ValueError:
        return False
    return True
