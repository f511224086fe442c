from typing import Iterable, Optional


def count_transfers(previous_starters: Iterable[str], previous_bench: Optional[str],
                    next_starters: Iterable[str], next_bench: Optional[str]) -> int:
    """
    Net roster changes between two saves, bench included. Swapping one rider
    for another is one transfer; a plain removal or addition is one too.
    """
    previous_ids = set(previous_starters)
    if previous_bench:
        previous_ids.add(previous_bench)

    next_ids = set(next_starters)
    if next_bench:
        next_ids.add(next_bench)

    removed = previous_ids - next_ids
    added = next_ids - previous_ids
    return max(len(removed), len(added))
