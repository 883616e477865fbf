"""Jinja2 rendering of CMDB source content.

Purpose
-------
Source files are templated before they are parsed, so a ``default.yml`` can
reference the host or environment it is being read for. Two delimiter styles
are offered: mustache-style ``{{ hostname }}`` and Template-Toolkit-style
``[% hostname %]``. Only variable substitution is live: Jinja2 block and
comment tags are disabled, so sources may contain ``{%`` or ``{#`` verbatim.

Contents
--------
* :data:`SYNTAXES` – supported delimiter styles.
* :class:`JinjaTemplateRenderer` – renders text with a per-instance environment.
* :class:`PassthroughRenderer` – leaves content untouched.

System Role
-----------
Implements :class:`lib_layered_cmdb.application.ports.TemplateRenderer` for the
caching source loader. Template errors are reported as
:class:`~lib_layered_cmdb.domain.errors.InvalidFormat` because a broken source
file is a configuration bug.
"""

from __future__ import annotations

from typing import Final, Mapping

from jinja2 import Environment, StrictUndefined, Undefined
from jinja2.exceptions import TemplateError

from ...domain.errors import InvalidFormat, InvalidOption
from ...observability import log_error

MUSTACHE: Final[str] = "mustache"
TEMPLATE_TOOLKIT: Final[str] = "template_toolkit"
SYNTAXES: Final[tuple[str, ...]] = (MUSTACHE, TEMPLATE_TOOLKIT)

# Only variable tags are live. Block and comment tags sit on NUL-framed markers
# that text sources never contain, so `{%` and `{#` (as in `${#ARGS[@]}`) pass through.
_INERT_TAGS: Final[dict[str, str]] = {
    "block_start_string": "\x00%",
    "block_end_string": "%\x00",
    "comment_start_string": "\x00#",
    "comment_end_string": "#\x00",
}

_DELIMITERS: Final[dict[str, dict[str, str]]] = {
    MUSTACHE: {"variable_start_string": "{{", "variable_end_string": "}}"},
    TEMPLATE_TOOLKIT: {"variable_start_string": "[%", "variable_end_string": "%]"},
}


class JinjaTemplateRenderer:
    """Render source text with Jinja2.

    Parameters
    ----------
    syntax:
        ``"mustache"`` (default) or ``"template_toolkit"``; dashes are accepted in
        place of underscores.
    strict:
        When ``True`` unknown variables raise instead of rendering as empty
        strings.
    """

    def __init__(self, syntax: str = MUSTACHE, *, strict: bool = False) -> None:
        normalized = syntax.strip().lower().replace("-", "_")
        if normalized not in _DELIMITERS:
            raise InvalidOption(f"Unknown template syntax {syntax!r}; expected one of: {', '.join(SYNTAXES)}")
        self.syntax = normalized
        self._env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined if strict else Undefined,
            **_INERT_TAGS,
            **_DELIMITERS[normalized],
        )

    def render(self, text: str, variables: Mapping[str, object], *, path: str | None = None) -> str:
        """Return *text* rendered with *variables*.

        Examples
        --------
        >>> JinjaTemplateRenderer().render("host: {{ hostname }}\\n", {"hostname": "web1"})
        'host: web1\\n'
        >>> JinjaTemplateRenderer("template_toolkit").render("env: [% environment %]", {"environment": "prod"})
        'env: prod'
        """

        try:
            return self._env.from_string(text).render(dict(variables))
        except TemplateError as exc:
            log_error("cmdb_template_invalid", stage="template", path=path, syntax=self.syntax, error=str(exc))
            raise InvalidFormat(f"Invalid template in {path or '<string>'}: {exc}") from exc


class PassthroughRenderer:
    """Renderer that returns content unchanged, disabling content templating."""

    def render(self, text: str, variables: Mapping[str, object], *, path: str | None = None) -> str:
        """Return *text* untouched.

        Why
            Sources that legitimately contain ``{{ }}`` (Helm values, Ansible vars)
            must reach the parser verbatim.
        Inputs
            text: Raw file content; *variables* and *path* are accepted for
            protocol compatibility and ignored.
        """

        return text
