"""Value generation engine."""

from .passwords import generate_password, generate_value
from .templating import render_template
from .values import complete_payload, generate_values

__all__ = [
    "generate_password",
    "generate_value",
    "render_template",
    "generate_values",
    "complete_payload",
]
