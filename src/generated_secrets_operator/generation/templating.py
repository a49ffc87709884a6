"""Rendering of templated secret values.

Templates use Jinja2 syntax in a sandbox. The fields of the input secret are
exposed as ``Ref``, so ``{{ Ref.password }}`` renders the ``password`` key.
Fields that do not exist render as ``<no value>``.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from ..utils.errors import TemplateError

MISSING_VALUE_PLACEHOLDER = "<no value>"


class PlaceholderUndefined(jinja2.Undefined):
    """Undefined value that renders as a visible placeholder."""

    __slots__ = ()

    def __str__(self) -> str:
        return MISSING_VALUE_PLACEHOLDER


_environment = SandboxedEnvironment(
    undefined=PlaceholderUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def render_template(template: str, secret_data: dict[str, Any] | None) -> bytes:
    """Render a template against the data of an input secret.

    Args:
        template: Jinja2 template text
        secret_data: Input secret data, values are decoded as UTF-8

    Returns:
        Rendered value

    Raises:
        TemplateError: If the template is empty, malformed or fails to render
    """
    if not template:
        raise TemplateError("template string cannot be empty")

    # Keys like "items" must not resolve to dict methods.
    # Ref["key-with-dash"] falls back to getattr.
    ref = SimpleNamespace(**{key: _decode(value) for key, value in (secret_data or {}).items()})

    try:
        compiled = _environment.from_string(template)
    except jinja2.TemplateSyntaxError as e:
        raise TemplateError(f"failed to parse template: {e.message} (line {e.lineno})") from e

    try:
        return compiled.render(Ref=ref).encode("utf-8")
    except jinja2.TemplateError as e:
        raise TemplateError(f"failed to execute template: {e}") from e
