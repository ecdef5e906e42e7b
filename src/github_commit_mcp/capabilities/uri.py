"""Resource URI templates.

Supports the two RFC 6570 forms the resources need: ``{name}`` matches one
path segment and ``{+name}`` matches the rest of the URI, slashes included
(branch names such as ``feature/login``).
"""

from __future__ import annotations

import re
import urllib.parse

_EXPRESSION = re.compile(r"{(\+?)(\w+)}")


class UriTemplate:
    def __init__(self, template: str):
        self.template = template
        self.parameters: list[str] = []
        self._pattern = self._compile(template)

    def _compile(self, template: str) -> re.Pattern[str]:
        pattern = ""
        position = 0
        for match in _EXPRESSION.finditer(template):
            reserved, name = match.groups()
            if name in self.parameters:
                raise ValueError(f"Duplicate parameter {name!r} in URI template {template!r}")
            self.parameters.append(name)
            pattern += re.escape(template[position : match.start()])
            pattern += f"(?P<{name}>.+)" if reserved else f"(?P<{name}>[^/?#]+)"
            position = match.end()
        pattern += re.escape(template[position:])
        return re.compile(f"^{pattern}$")

    def matches(self, uri: str) -> dict[str, str] | None:
        """Extract parameters from ``uri``, or None if it does not fit."""
        match = self._pattern.match(uri.rstrip("/"))
        if not match:
            return None
        return {name: urllib.parse.unquote(value) for name, value in match.groupdict().items()}

    def __repr__(self) -> str:
        return f"UriTemplate({self.template!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UriTemplate) and other.template == self.template

    def __hash__(self) -> int:
        return hash(self.template)
