"""
Template variable substitution.

Dashboard variables appear in target expressions as ``$name``,
``${name}`` or ``[[name]]``. Multi-value variables expand to the
backend's glob form ``{a,b}``. Unknown variables are left untouched.
"""

import re
from typing import Any, Dict, List, Optional, Union

VARIABLE_PATTERN = re.compile(r"\$(\w+)|\[\[([\s\S]+?)\]\]|\$\{(\w+)\}")

VariableValue = Union[str, List[str]]


def format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        if len(value) == 1:
            return str(value[0])
        return "{" + ",".join(str(v) for v in value) + "}"
    return str(value)


class TemplateVariables:
    """Dashboard-level variables plus per-panel scoped overrides."""

    def __init__(self, variables: Optional[Dict[str, VariableValue]] = None):
        self.variables: Dict[str, VariableValue] = dict(variables or {})

    def set(self, name: str, value: VariableValue) -> None:
        self.variables[name] = value

    def _lookup(self, name: str, scoped_vars: Optional[Dict[str, Any]]):
        if scoped_vars and name in scoped_vars:
            scoped = scoped_vars[name]
            # Scoped vars arrive as {"text": ..., "value": ...}
            if isinstance(scoped, dict):
                return scoped.get("value")
            return scoped
        return self.variables.get(name)

    def replace(self, target: Optional[str], scoped_vars: Optional[Dict[str, Any]] = None) -> str:
        """Substitute every known variable reference in `target`."""
        if not target:
            return target or ""

        def replacer(match: re.Match) -> str:
            name = match.group(1) or match.group(2) or match.group(3)
            value = self._lookup(name, scoped_vars)
            if value is None:
                return match.group(0)
            return format_value(value)

        return VARIABLE_PATTERN.sub(replacer, target)
