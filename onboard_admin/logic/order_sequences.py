"""Question order assignment and contiguous renumbering.

These helpers are the single source of truth for ``order`` values. The sync
client applies them optimistically to its cache and the backing service
applies the same functions when persisting a reorder, so both sides converge
on identical orders for the same input.

Collections may hold ``Question`` models or plain mappings with ``id`` and
``order`` keys.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence
import logging

logger = logging.getLogger(__name__)


def _ident(item: Any) -> str:
    if isinstance(item, Mapping):
        return str(item["id"])
    return str(item.id)


def _order(item: Any) -> float:
    value = item.get("order") if isinstance(item, Mapping) else getattr(item, "order", None)
    if isinstance(value, bool) or not isinstance(value, int):
        return float("inf")
    return float(value)


def next_order(collection: Iterable[Any]) -> int:
    """Return the order that places a new item after every existing one."""
    highest = 0
    for item in collection:
        value = _order(item)
        if value != float("inf") and value > highest:
            highest = int(value)
    return highest + 1


def renumber(ordered_ids: Sequence[str], collection: Sequence[Any]) -> Dict[str, int]:
    """Assign dense 1-based orders to every member of ``collection``.

    - Ids in ``ordered_ids`` take ``index + 1`` in the given sequence; unknown
      ids and repeats are skipped (first occurrence wins).
    - Members missing from ``ordered_ids`` follow, sorted by their previous
      order, ties broken by their position in ``collection``.

    The result maps every member id to a unique value in ``1..len(collection)``.
    """
    members: Dict[str, int] = {}
    for position, item in enumerate(collection):
        members.setdefault(_ident(item), position)

    sequence: List[str] = []
    seen: set[str] = set()
    for qid in ordered_ids:
        key = str(qid)
        if key in members and key not in seen:
            sequence.append(key)
            seen.add(key)

    omitted = [
        (_order(item), position, _ident(item))
        for position, item in enumerate(collection)
        if _ident(item) not in seen and members.get(_ident(item)) == position
    ]
    omitted.sort(key=lambda entry: (entry[0], entry[1]))
    sequence.extend(qid for _, _, qid in omitted)

    mapping = {qid: index + 1 for index, qid in enumerate(sequence)}
    if len(seen) != len(ordered_ids) or omitted:
        logger.info(
            "order_sequences.renumber requested=%s matched=%s appended=%s",
            len(ordered_ids),
            len(seen),
            len(omitted),
        )
    return mapping


def apply_order(collection: Sequence[Any], mapping: Mapping[str, int]) -> List[Any]:
    """Return ``collection`` with orders replaced from ``mapping``, sorted ascending.

    Models are copied, never mutated; members absent from ``mapping`` keep
    their previous order.
    """
    updated: List[Any] = []
    for item in collection:
        qid = _ident(item)
        if qid not in mapping:
            updated.append(item)
        elif isinstance(item, Mapping):
            updated.append({**item, "order": mapping[qid]})
        else:
            updated.append(item.model_copy(update={"order": mapping[qid]}))
    return sorted(updated, key=_order)


def ids_in_order(collection: Iterable[Any]) -> List[str]:
    """Ids of ``collection`` sorted by ascending order (stable)."""
    return [_ident(item) for item in sorted(collection, key=_order)]


__all__ = ["next_order", "renumber", "apply_order", "ids_in_order"]
