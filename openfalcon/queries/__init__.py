"""
Query translation modules

Split by concern:
- timerange.py: dashboard time boundaries -> backend from/until values
- targets.py: series letters, variable substitution, #X back-references
- params.py: render parameter serialization
- normalize.py: render response -> canonical series
"""

from .timerange import translate_time
from .targets import ResolvedTarget, assign_letters, fix_interval_format, resolve_targets
from .params import build_params, encode_component, join_params, parse_targets
from .normalize import convert_datapoints_to_ms

from .constants import MAX_TARGETS, RENDER_OPTIONS, ROUND_DOWN, ROUND_UP, SERIES_REF_LETTERS

__all__ = [
    # Time ranges
    'translate_time',

    # Targets
    'ResolvedTarget',
    'assign_letters',
    'fix_interval_format',
    'resolve_targets',

    # Parameters
    'build_params',
    'encode_component',
    'join_params',
    'parse_targets',

    # Responses
    'convert_datapoints_to_ms',

    # Constants
    'MAX_TARGETS',
    'RENDER_OPTIONS',
    'ROUND_DOWN',
    'ROUND_UP',
    'SERIES_REF_LETTERS',
]
