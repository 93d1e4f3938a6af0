"""Stage status values and stage registry helpers.

Pure domain logic with no external dependencies.
"""

from dataclasses import dataclass
from enum import StrEnum


class StageStatus(StrEnum):
    """Status of one task at one stage. Transitions are not forward-only."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


SORT_ORDER_STEP = 10


def normalize_email(value: str | None) -> str:
    """Trim and lower-case an email for comparison and storage."""
    return (value or "").strip().lower()


def sort_order_for(index: int) -> int:
    """Sort order of the stage at ``index`` (0-based): 10, 20, 30, ..."""
    return (index + 1) * SORT_ORDER_STEP


def parse_status(value: str | None) -> StageStatus | None:
    """Return the canonical status for ``value``, or None if it is not one.

    Matching is exact after trimming: "done" is not "Done".
    """
    try:
        return StageStatus((value or "").strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class StageEntry:
    """A cleaned stage definition ready to be written to the registry."""

    stage_name: str
    stage_owner_email: str = ""


def clean_stage_entries(items: list) -> list[StageEntry]:
    """Trim and de-duplicate submitted stages, preserving submitted order.

    Items are plain names or mappings with ``stage_name`` and optional
    ``stage_owner_email``. Blank names are skipped. Names collide
    case-insensitively and the first occurrence wins; later collisions are
    dropped silently.
    """
    cleaned: list[StageEntry] = []
    seen: set[str] = set()
    for item in items:
        if isinstance(item, str):
            name, owner = item, ""
        elif isinstance(item, dict):
            name, owner = item.get("stage_name") or "", item.get("stage_owner_email") or ""
        else:
            name = getattr(item, "stage_name", "") or ""
            owner = getattr(item, "stage_owner_email", "") or ""

        name = str(name).strip()
        if not name:
            continue
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(StageEntry(stage_name=name, stage_owner_email=normalize_email(owner)))
    return cleaned


def next_stage_name(ordered_names: list[str], stage_name: str) -> str | None:
    """Name of the stage after ``stage_name`` in registry order.

    A stage that is not registered counts as sitting before the first one, so
    its next stage is the first registered stage. Returns None at the last
    stage and for an empty registry.
    """
    index = ordered_names.index(stage_name) if stage_name in ordered_names else -1
    if index + 1 < len(ordered_names):
        return ordered_names[index + 1]
    return None
