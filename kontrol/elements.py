#!/usr/bin/env python3
"""
Kontrol Element Table - nanoKONTROL2 control identifiers and classification.

Every physical control on the surface sends a MIDI Control Change whose
controller number is the element ID. Banks of eight controls occupy
contiguous ID ranges; single buttons have one ID each.

NOTE: These IDs are verified for the Korg nanoKONTROL2 in its factory
CC mode. Another controller layout needs a new ELEMENT_TABLE, nothing else.

Layout:
    Sliders         0-7     (bank, channel delta +1)
    Knobs          16-23    (bank, channel delta -15)
    Solo buttons   32-39    (bank, channel delta -31)
    Mute buttons   48-55    (bank, channel delta -47)
    Record buttons 64-71    (bank, channel delta -63)
    Track < >      58, 59
    Transport      41-46, 60-62
"""

from typing import Dict, NamedTuple, Optional, Sequence


# Value sent by buttons when pressed (release sends 0)
BUTTON_PRESSED = 127

# MIDI value domain
VALUE_MIN = 0
VALUE_MAX = 127

# Controls per bank
BANK_SIZE = 8


# ============================================================================
# ELEMENT IDS
# ============================================================================

class ElementID:
    """Controller numbers sent by the nanoKONTROL2."""
    SLIDER_1 = 0
    SLIDER_8 = 7
    KNOB_1 = 16
    KNOB_8 = 23
    SOLO_1 = 32
    SOLO_8 = 39
    MUTE_1 = 48
    MUTE_8 = 55
    RECORD_1 = 64
    RECORD_8 = 71

    TRACK_PREVIOUS = 58
    TRACK_NEXT = 59

    CYCLE = 46
    MARKER_SET = 60
    MARKER_PREVIOUS = 61
    MARKER_NEXT = 62
    REWIND = 43
    FORWARD = 44
    STOP = 42
    PLAY = 41
    RECORD = 45


class ElementClass:
    """Element classes.

    Values of the bank classes are also the class segment of outbound
    OSC addresses (/s1/slider/3, /knob/12, ...).
    """
    TRACK_PREVIOUS = "track_previous"
    TRACK_NEXT = "track_next"
    SLIDER = "slider"
    KNOB = "knob"
    SOLO = "solo"
    MUTE = "mute"
    RECORD = "record"
    TRANSPORT = "transport"
    UNMAPPED = "unmapped"


# Bank classes, in surface order
BANK_CLASSES = (
    ElementClass.SLIDER,
    ElementClass.KNOB,
    ElementClass.SOLO,
    ElementClass.MUTE,
    ElementClass.RECORD,
)

# Button banks that select a mixer group, and the token letter for each
GROUP_LETTERS: Dict[str, str] = {
    ElementClass.SOLO: "s",
    ElementClass.MUTE: "m",
    ElementClass.RECORD: "r",
}


class ElementRange(NamedTuple):
    """One row of the element table.

    Attributes:
        first: First element ID (inclusive)
        last: Last element ID (inclusive), equal to first for single buttons
        element_class: ElementClass value
        delta: Offset turning an element ID into its 1-based bank position
    """
    first: int
    last: int
    element_class: str
    delta: int = 0

    def contains(self, element: int) -> bool:
        return self.first <= element <= self.last

    def position(self, element: int) -> int:
        """1-based position of element within this row's bank."""
        return element + self.delta


# ============================================================================
# ELEMENT TABLE
# ============================================================================

ELEMENT_TABLE = (
    ElementRange(ElementID.TRACK_PREVIOUS, ElementID.TRACK_PREVIOUS, ElementClass.TRACK_PREVIOUS),
    ElementRange(ElementID.TRACK_NEXT, ElementID.TRACK_NEXT, ElementClass.TRACK_NEXT),
    ElementRange(ElementID.SLIDER_1, ElementID.SLIDER_8, ElementClass.SLIDER, 1),
    ElementRange(ElementID.KNOB_1, ElementID.KNOB_8, ElementClass.KNOB, -15),
    ElementRange(ElementID.SOLO_1, ElementID.SOLO_8, ElementClass.SOLO, -31),
    ElementRange(ElementID.MUTE_1, ElementID.MUTE_8, ElementClass.MUTE, -47),
    ElementRange(ElementID.RECORD_1, ElementID.RECORD_8, ElementClass.RECORD, -63),
    ElementRange(ElementID.CYCLE, ElementID.CYCLE, ElementClass.TRANSPORT),
    ElementRange(ElementID.MARKER_SET, ElementID.MARKER_SET, ElementClass.TRANSPORT),
    ElementRange(ElementID.MARKER_PREVIOUS, ElementID.MARKER_PREVIOUS, ElementClass.TRANSPORT),
    ElementRange(ElementID.MARKER_NEXT, ElementID.MARKER_NEXT, ElementClass.TRANSPORT),
    ElementRange(ElementID.REWIND, ElementID.REWIND, ElementClass.TRANSPORT),
    ElementRange(ElementID.FORWARD, ElementID.FORWARD, ElementClass.TRANSPORT),
    ElementRange(ElementID.STOP, ElementID.STOP, ElementClass.TRANSPORT),
    ElementRange(ElementID.PLAY, ElementID.PLAY, ElementClass.TRANSPORT),
    ElementRange(ElementID.RECORD, ElementID.RECORD, ElementClass.TRANSPORT),
)

# Transport buttons → OSC address suffix (sent as /<suffix>)
TRANSPORT_ADDRESSES: Dict[int, str] = {
    ElementID.CYCLE: "cycle",
    ElementID.MARKER_SET: "marker/set",
    ElementID.MARKER_PREVIOUS: "marker/previous",
    ElementID.MARKER_NEXT: "marker/next",
    ElementID.REWIND: "rewind",
    ElementID.FORWARD: "forward",
    ElementID.STOP: "stop",
    ElementID.PLAY: "play",
    ElementID.RECORD: "record",
}


# ============================================================================
# CLASSIFICATION
# ============================================================================

def validate_table(table: Sequence[ElementRange]) -> None:
    """Check that no element ID belongs to two rows.

    Args:
        table: Element table to check

    Raises:
        ValueError: If a row is inverted or two rows overlap

    Examples:
        >>> validate_table(ELEMENT_TABLE)  # OK
        >>> validate_table([ElementRange(0, 7, "slider"), ElementRange(7, 7, "play")])
        Traceback (most recent call last):
        ...
        ValueError: Element rows overlap: slider 0-7 and play 7-7
    """
    for row in table:
        if row.first > row.last:
            raise ValueError(f"Inverted element row: {row.element_class} {row.first}-{row.last}")

    ordered = sorted(table, key=lambda row: row.first)
    for previous, current in zip(ordered, ordered[1:]):
        if current.first <= previous.last:
            raise ValueError(
                f"Element rows overlap: {previous.element_class} {previous.first}-{previous.last} "
                f"and {current.element_class} {current.first}-{current.last}"
            )


def classify(element: int, table: Sequence[ElementRange] = ELEMENT_TABLE) -> Optional[ElementRange]:
    """Find the table row an element belongs to.

    Args:
        element: Element ID (MIDI controller number)
        table: Element table (default: nanoKONTROL2)

    Returns:
        Matching ElementRange, or None for unrecognized IDs

    Examples:
        >>> classify(3).element_class
        'slider'
        >>> classify(100) is None
        True
    """
    for row in table:
        if row.contains(element):
            return row
    return None


def element_class(element: int, table: Sequence[ElementRange] = ELEMENT_TABLE) -> str:
    """Classify an element ID, returning ElementClass.UNMAPPED when unknown."""
    row = classify(element, table)
    if row is None:
        return ElementClass.UNMAPPED
    return row.element_class


validate_table(ELEMENT_TABLE)
