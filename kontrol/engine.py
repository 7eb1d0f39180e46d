#!/usr/bin/env python3
"""
Kontrol Mapping Engine - Control surface events → DAW control OSC messages.

Interprets raw (element, value) events from the control surface, keeps the
session state (page, active group) and derives the outbound OSC address and
payload for each event.

Architecture:
    MIDI Input → MappingEngine.handle() → OscSink.send()
                        │
                        └→ status line on page/group change

Paging:
    Track < / > (pressed) move the page between 1 and 8. Each page shifts
    the eight physical controls of a bank by eight logical channels:
        channel = element + class_delta + (page - 1) * 8

Addressing modes:
    group:  Solo/Mute/Record presses select the active group (s1..s8,
            m1..m8, r1..r8); sliders and knobs send /<group>/<class>/<channel>
    direct: Every bank control is a channel; /<class>/<channel>

Transport:
    Cycle, markers, rewind, forward, stop, play, record send /<suffix> 255.
    transport_trigger "any" fires on every value (press and release),
    "press" only on the pressed value.
"""

import math
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence

from kontrol.elements import (
    BANK_SIZE,
    BUTTON_PRESSED,
    ELEMENT_TABLE,
    GROUP_LETTERS,
    TRANSPORT_ADDRESSES,
    VALUE_MAX,
    VALUE_MIN,
    ElementClass,
    ElementRange,
    classify,
)
from kontrol.osc import MessageStatistics, Payload
from kontrol.log import get_logger

logger = get_logger("engine")


# ============================================================================
# CONSTANTS
# ============================================================================

PAGE_MIN = 1
PAGE_MAX = 8

# Output value domain
OUTPUT_MAX = 255

DEFAULT_GROUP = "s1"

# Payload formats
PAYLOAD_INT = "int"
PAYLOAD_FLOAT = "float"
PAYLOAD_FORMATS = (PAYLOAD_INT, PAYLOAD_FLOAT)

# Transport gate
TRIGGER_ANY = "any"
TRIGGER_PRESS = "press"
TRANSPORT_TRIGGERS = (TRIGGER_ANY, TRIGGER_PRESS)


# ============================================================================
# VALUE SCALING
# ============================================================================

def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero (2.5 → 3)."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def scale_value(value: int, payload_format: str = PAYLOAD_INT) -> Payload:
    """Rescale a MIDI value (0-127) to the output domain (0-255).

    Args:
        value: Raw event value, clamped to 0-127
        payload_format: "int" (rounded) or "float" (unrounded)

    Returns:
        Scaled payload

    Examples:
        >>> scale_value(0)
        0
        >>> scale_value(64)
        129
        >>> scale_value(127)
        255
        >>> scale_value(127, "float")
        255.0
    """
    value = max(VALUE_MIN, min(VALUE_MAX, value))
    scaled = value / VALUE_MAX * OUTPUT_MAX
    if payload_format == PAYLOAD_FLOAT:
        return scaled
    return round_half_up(scaled)


def constant_payload(payload_format: str = PAYLOAD_INT) -> Payload:
    """Full-scale payload used for transport commands."""
    if payload_format == PAYLOAD_FLOAT:
        return float(OUTPUT_MAX)
    return OUTPUT_MAX


def channel_for(row: ElementRange, element: int, page: int) -> int:
    """Logical channel of a bank element on a page.

    Examples:
        >>> from kontrol.elements import classify
        >>> channel_for(classify(0), 0, 1)    # Slider 1, page 1
        1
        >>> channel_for(classify(16), 16, 3)  # Knob 1, page 3
        17
    """
    return row.position(element) + (page - 1) * BANK_SIZE


def group_token(row: ElementRange, element: int) -> str:
    """Group token for a solo/mute/record button, e.g. "s3".

    Raises:
        ValueError: If the row's class doesn't select groups
    """
    letter = GROUP_LETTERS.get(row.element_class)
    if letter is None:
        raise ValueError(f"{row.element_class} buttons don't select groups")
    return f"{letter}{row.position(element)}"


# ============================================================================
# SESSION STATE
# ============================================================================

@dataclass
class SessionState:
    """Mutable session state, owned by one MappingEngine.

    Attributes:
        page (int): Current page (1-8)
        group (str): Active group token (e.g. "s1", "m2", "r8")
        aliases (dict): Group token → display name (read-only after startup)
    """
    page: int = PAGE_MIN
    group: str = DEFAULT_GROUP
    aliases: Dict[str, str] = field(default_factory=dict)

    def group_display(self) -> str:
        """Group token with its alias, e.g. "s1 (Drums)"."""
        name = self.aliases.get(self.group)
        if name:
            return f"{self.group} ({name})"
        return self.group


# ============================================================================
# ADDRESSING STRATEGIES
# ============================================================================

class GroupAddressing:
    """Solo/Mute/Record select a group; sliders and knobs address it.

    Addresses: /<group>/<class>/<channel>
    Status line: Group: <token>[ (<alias>)], Page: <n>
    """
    name = "group"
    channel_classes = (ElementClass.SLIDER, ElementClass.KNOB)
    selector_classes = (ElementClass.SOLO, ElementClass.MUTE, ElementClass.RECORD)

    def address(self, state: SessionState, element_class: str, channel: int) -> str:
        return f"/{state.group}/{element_class}/{channel}"

    def status_line(self, state: SessionState) -> str:
        return f"Group: {state.group_display()}, Page: {state.page}"


class DirectAddressing:
    """Every bank control is a direct output channel, no group state.

    Addresses: /<class>/<channel>
    Status line: Page: <n>
    """
    name = "direct"
    channel_classes = (
        ElementClass.SLIDER,
        ElementClass.KNOB,
        ElementClass.SOLO,
        ElementClass.MUTE,
        ElementClass.RECORD,
    )
    selector_classes = ()

    def address(self, state: SessionState, element_class: str, channel: int) -> str:
        return f"/{element_class}/{channel}"

    def status_line(self, state: SessionState) -> str:
        return f"Page: {state.page}"


MODES = {
    GroupAddressing.name: GroupAddressing,
    DirectAddressing.name: DirectAddressing,
}


# ============================================================================
# MAPPING ENGINE
# ============================================================================

class MappingEngine:
    """Event mapping engine.

    Responsibilities:
        - Classify elements via the element table
        - Page up/down on Track < / >
        - Select the active group on Solo/Mute/Record (group mode)
        - Map bank controls to paged channels and send them
        - Send fixed transport commands

    handle() is safe to call from several MIDI callback threads: one lock
    serializes events so a page or group change is applied before the next
    event's address is computed.

    Args:
        sink: Object with send(address, payload), e.g. OscSink
        mode: "group" or "direct"
        payload_format: "int" or "float"
        transport_trigger: "any" or "press"
        default_group: Initial group token
        aliases: Group token → display name
        status: Callable receiving each status line (default: print)
        table: Element table (default: nanoKONTROL2)
        stats: Optional shared statistics tracker
    """

    def __init__(self, sink, mode: str = GroupAddressing.name,
                 payload_format: str = PAYLOAD_INT,
                 transport_trigger: str = TRIGGER_ANY,
                 default_group: str = DEFAULT_GROUP,
                 aliases: Optional[Dict[str, str]] = None,
                 status: Optional[Callable[[str], None]] = None,
                 table: Sequence[ElementRange] = ELEMENT_TABLE,
                 stats: Optional[MessageStatistics] = None):
        if mode not in MODES:
            raise ValueError(f"Unknown mode '{mode}', expected one of {sorted(MODES)}")
        if payload_format not in PAYLOAD_FORMATS:
            raise ValueError(f"Unknown payload format '{payload_format}', expected one of {PAYLOAD_FORMATS}")
        if transport_trigger not in TRANSPORT_TRIGGERS:
            raise ValueError(
                f"Unknown transport trigger '{transport_trigger}', expected one of {TRANSPORT_TRIGGERS}"
            )

        self.sink = sink
        self.strategy = MODES[mode]()
        self.payload_format = payload_format
        self.transport_trigger = transport_trigger
        self.table = table
        self.status = status if status is not None else print
        self.stats = stats if stats is not None else MessageStatistics()

        self.state = SessionState(group=default_group, aliases=dict(aliases or {}))
        self.state_lock = threading.Lock()

    @property
    def mode(self) -> str:
        return self.strategy.name

    def handle(self, element: int, value: int) -> None:
        """Handle one control surface event.

        Args:
            element: Element ID (MIDI controller number)
            value: Event value (0-127)
        """
        with self.state_lock:
            self.stats.increment('midi_events')

            row = classify(element, self.table)
            if row is None:
                self.stats.increment('unmapped_events')
                logger.debug(f"Ignoring unmapped element {element} (value {value})")
                return

            element_class = row.element_class

            if element_class == ElementClass.TRACK_PREVIOUS:
                self._change_page(-1, value)
            elif element_class == ElementClass.TRACK_NEXT:
                self._change_page(+1, value)
            elif element_class in self.strategy.channel_classes:
                self._send_channel(row, element, value)
            elif element_class in self.strategy.selector_classes:
                self._select_group(row, element, value)
            elif element_class == ElementClass.TRANSPORT:
                self._send_transport(element, value)

    def _change_page(self, step: int, value: int) -> None:
        """Move the page by step when pressed; no-op at the 1/8 boundaries."""
        if value != BUTTON_PRESSED:
            return

        new_page = self.state.page + step
        if new_page < PAGE_MIN or new_page > PAGE_MAX:
            return

        self.state.page = new_page
        self.stats.increment('page_changes')
        self._echo_status()

    def _select_group(self, row: ElementRange, element: int, value: int) -> None:
        """Make the pressed solo/mute/record button's group active."""
        if value != BUTTON_PRESSED:
            return

        self.state.group = group_token(row, element)
        self.stats.increment('group_changes')
        self._echo_status()

    def _send_channel(self, row: ElementRange, element: int, value: int) -> None:
        """Send a bank control's value on its paged channel."""
        channel = channel_for(row, element, self.state.page)
        address = self.strategy.address(self.state, row.element_class, channel)
        self._send(address, scale_value(value, self.payload_format))

    def _send_transport(self, element: int, value: int) -> None:
        """Send the fixed transport command for element."""
        if self.transport_trigger == TRIGGER_PRESS and value != BUTTON_PRESSED:
            return

        suffix = TRANSPORT_ADDRESSES.get(element)
        if not suffix:
            return

        self._send(f"/{suffix}", constant_payload(self.payload_format))

    def _send(self, address: str, payload: Payload) -> None:
        # Failures are the sink's business; nothing comes back to the engine.
        self.sink.send(address, payload)

    def _echo_status(self) -> None:
        self.status(self.strategy.status_line(self.state))
