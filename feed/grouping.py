from typing import Dict, Iterable, List

from .events import RawTransfer


def group_by_hash(rows: Iterable[RawTransfer]) -> Dict[str, List[RawTransfer]]:
    """Partition rows by transaction hash.

    Groups come out in first-seen order and each group keeps the original
    relative order of its rows.
    """
    groups: Dict[str, List[RawTransfer]] = {}
    for row in rows:
        groups.setdefault(row.hash, []).append(row)
    return groups
