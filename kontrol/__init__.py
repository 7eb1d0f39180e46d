"""
Kontrol - nanoKONTROL2 MIDI → OSC bridge for DAW control.

Modules:
    elements: Control surface element table and classifier
    engine: Event mapping engine (paging, group selection, channel mapping)
    osc: OSC output sink and message statistics
    midi: MIDI input source (device lookup, event callbacks)
    aliases: Group alias file loader
    config: YAML configuration loading and validation
    bridge: Command-line entry point
"""

__version__ = "0.1.0"

# Note: Modules are imported on-demand so that python -m kontrol.bridge
# works without RuntimeWarning.
