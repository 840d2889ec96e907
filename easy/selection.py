# EASY/easy/selection.py

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Set

from easy.discovery import ScriptEntry
from easy.errors import SelectionError

_TOKEN_SPLIT = re.compile(r"[\s,]+")


@dataclass
class Selection:
    """Parsed checklist answer: run indices (ascending) and special-token flags."""
    indices: List[int] = field(default_factory=list)
    flags: Set[str] = field(default_factory=set)

    @property
    def empty(self) -> bool:
        return not self.indices


def parse_selection(result: str, item_count: int, special_tokens: Iterable[str] = ()) -> Selection:
    """
    Splits a checklist answer such as "3 adv 1" into Selection([1, 3], {"adv"}).

    Special tokens are matched case-insensitively and never become run
    indices. The remaining tokens must be integers in 1..item_count; they are
    de-duplicated and sorted so the run order follows the list, not the
    order the user typed them in.
    """
    specials = {token.lower() for token in special_tokens}
    selection = Selection()
    seen: Set[int] = set()

    for token in _TOKEN_SPLIT.split((result or "").strip().strip('"')):
        token = token.strip('"')
        if not token:
            continue
        if token.lower() in specials:
            selection.flags.add(token.lower())
            continue
        if not (token.isascii() and token.isdigit()):
            raise SelectionError(f"'{token}' is not an option number.")
        index = int(token)
        if not 1 <= index <= item_count:
            raise SelectionError(f"Option {index} is out of range (1-{item_count}).")
        seen.add(index)

    selection.indices = sorted(seen)
    return selection


def selected_entries(entries: Sequence[ScriptEntry], selection: Selection) -> List[ScriptEntry]:
    """The entries picked by the selection, in run order, with their selected flag set."""
    by_index = {entry.index: entry for entry in entries}
    picked = []
    for entry in entries:
        entry.selected = entry.index in selection.indices
    for index in selection.indices:
        picked.append(by_index[index])
    return picked
