"""
Lineup slot constants and helpers.

ESPN encodes lineup positions as numeric slot ids. Bench and IR are the only
slots that do not count toward a team's weekly score.
"""

from typing import Mapping, Optional

QB = 0
RB = 2
WR = 4
TE = 6
DST = 16
K = 17
BENCH = 20
IR = 21
FLEX = 23

NON_STARTER_SLOTS = frozenset({BENCH, IR})

SLOT_LABELS = {
    QB: 'QB',
    RB: 'RB',
    WR: 'WR',
    TE: 'TE',
    DST: 'D/ST',
    K: 'K',
    BENCH: 'BENCH',
    IR: 'IR',
    FLEX: 'FLEX',
}

_LABEL_TO_SLOT = {
    'QB': QB,
    'RB': RB,
    'WR': WR,
    'TE': TE,
    'D/ST': DST,
    'DST': DST,
    'K': K,
    'FLEX': FLEX,
    'BENCH': BENCH,
    'IR': IR,
}


def normalize_slot_id(entry: Mapping) -> Optional[int]:
    """
    Resolve the lineup slot id of a raw roster entry.

    Prefers the numeric ``lineupSlotId``; falls back to the ``lineupSlot`` label.

    Returns:
        Slot id, or None when neither form is recognised
    """
    slot_id = entry.get('lineupSlotId')
    if isinstance(slot_id, int) and not isinstance(slot_id, bool):
        return slot_id

    label = entry.get('lineupSlot') or ''
    if not isinstance(label, str):
        return None
    return _LABEL_TO_SLOT.get(label.strip().upper())


def is_starter(slot_id: Optional[int]) -> bool:
    """Every known slot except bench and IR is a starter."""
    if slot_id is None:
        return False
    return slot_id not in NON_STARTER_SLOTS


def get_slot_label(slot_id: Optional[int]) -> Optional[str]:
    """Display label for a slot id; unknown ids get a SLOT_<id> label."""
    if slot_id is None:
        return None
    return SLOT_LABELS.get(slot_id, f"SLOT_{slot_id}")
