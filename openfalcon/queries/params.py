"""
Render request parameter serialization.

Builds the ordered ``key=value`` list sent to /render: one ``target=``
entry per visible target, then the recognized render options.
"""

from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import parse_qsl, quote

from .constants import RENDER_OPTIONS
from .targets import resolve_targets

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_component(value: Any) -> str:
    """Percent-encode a single query-string value."""
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe=_URI_COMPONENT_SAFE)


def build_params(options: Mapping[str, Any], variables, scoped_vars: Optional[Dict[str, Any]] = None) -> List[str]:
    """
    Serialize render options into ``key=value`` strings.

    Args:
        options: Mapping with "targets" plus any of from/until/rawData/
            format/maxDataPoints/cacheTimeout
        variables: Template variable lookup with replace(expression, scoped_vars)
        scoped_vars: Optional per-panel variable overrides

    Returns:
        Ordered list: target entries first, then options in fixed order.
        Options with a falsy value (0, "", False, None) are left out, so a
        cacheTimeout of 0 is the same as no cacheTimeout at all.
    """
    options = dict(options)
    if options.get("format") != "png":
        options["format"] = "json"

    params = [
        "target=" + encode_component(resolved.expression)
        for resolved in resolve_targets(options.get("targets") or [], variables, scoped_vars)
    ]

    for key in RENDER_OPTIONS:
        value = options.get(key)
        if value:
            params.append(f"{key}={encode_component(value)}")

    return params


def join_params(params: List[str]) -> str:
    return "&".join(params)


def parse_targets(query_string: str) -> List[str]:
    """Recover the target values from a serialized parameter string."""
    return [value for key, value in parse_qsl(query_string, keep_blank_values=True) if key == "target"]
