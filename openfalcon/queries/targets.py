"""
Target expression resolution.

Each panel target is assigned a series letter by position (A, B, ...).
Resolution runs in two passes:

1. Substitution - every non-empty target (hidden ones included) gets its
   template variables interpolated and its interval literals rewritten.
   The result is a frozen letter -> expression snapshot.
2. Cross-reference - every visible target has its #X back-references
   replaced from the snapshot and is emitted in target order.

Pass 2 only starts once pass 1 has finished for all targets, so any
target may reference any other regardless of declaration order.
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..exceptions import (
    CircularSeriesReferenceError,
    TooManyTargetsError,
    UnknownSeriesReferenceError,
)
from .constants import MAX_TARGETS, SERIES_REF_LETTERS, UNIT_ALIASES

logger = logging.getLogger("openfalcon.queries")

SERIES_REF_PATTERN = re.compile(r"#([A-Z])")
INTERVAL_LITERAL_PATTERN = re.compile(r"'(\d+)([mM])'")


@dataclass(frozen=True)
class ResolvedTarget:
    letter: str
    expression: str


def _field(target: Any, name: str, default=None):
    if isinstance(target, Mapping):
        return target.get(name, default)
    return getattr(target, name, default)


def assign_letters(targets: Sequence[Any]) -> Tuple[Tuple[str, Any], ...]:
    """
    Pair each target with its series letter.

    Raises:
        TooManyTargetsError: If there are more targets than letters
    """
    if len(targets) > MAX_TARGETS:
        raise TooManyTargetsError(len(targets), MAX_TARGETS)
    return tuple(zip(SERIES_REF_LETTERS, targets))


def fix_interval_format(expression: str) -> str:
    """Rewrite quoted interval literals: '5m' -> '5min', '1M' -> '1mon'."""
    return INTERVAL_LITERAL_PATTERN.sub(
        lambda m: f"'{m.group(1)}{UNIT_ALIASES[m.group(2)]}'", expression
    )


def substitute_targets(lettered, variables, scoped_vars: Optional[Dict[str, Any]] = None) -> Mapping[str, str]:
    """First pass: interpolate variables for every non-empty target."""
    resolved = {}
    for letter, target in lettered:
        expression = _field(target, "target")
        if not expression:
            continue
        expression = variables.replace(expression, scoped_vars)
        resolved[letter] = fix_interval_format(expression)
    return MappingProxyType(resolved)


def expand_references(letter: str, snapshot: Mapping[str, str], cache: Dict[str, str], chain: List[str]) -> str:
    """Expand #X references in the snapshot entry for `letter`, transitively."""
    if letter in cache:
        return cache[letter]
    if letter in chain:
        raise CircularSeriesReferenceError(chain[chain.index(letter):] + [letter])
    if letter not in snapshot:
        raise UnknownSeriesReferenceError(letter)

    chain.append(letter)
    expanded = SERIES_REF_PATTERN.sub(
        lambda m: expand_references(m.group(1), snapshot, cache, chain), snapshot[letter]
    )
    chain.pop()
    cache[letter] = expanded
    return expanded


def resolve_targets(targets: Sequence[Any], variables, scoped_vars: Optional[Dict[str, Any]] = None) -> List[ResolvedTarget]:
    """
    Resolve panel targets into final backend expressions.

    Args:
        targets: Sequence of QueryTarget models or {"target", "hide"} dicts
        variables: Object with replace(expression, scoped_vars) -> str
        scoped_vars: Optional per-panel variable overrides

    Returns:
        Visible targets in original order, with all references expanded

    Raises:
        TooManyTargetsError: More than 26 targets
        UnknownSeriesReferenceError: #X names a letter with no expression
        CircularSeriesReferenceError: References loop back on themselves
    """
    lettered = assign_letters(targets)
    snapshot = substitute_targets(lettered, variables, scoped_vars)

    cache: Dict[str, str] = {}
    emitted = []
    for letter, target in lettered:
        if letter not in snapshot or _field(target, "hide", False):
            continue
        emitted.append(ResolvedTarget(letter, expand_references(letter, snapshot, cache, [])))

    logger.debug(f"Resolved {len(emitted)} of {len(targets)} targets")
    return emitted
