"""Resolution of template entries into secret payloads."""

from __future__ import annotations

import logging
from typing import Mapping

from .. import metrics
from ..models import GeneratedValue, StaticValue, TemplatedValue, ValueSpec
from ..services.store.base import ObjectStore
from ..utils.errors import GenerationError, InputSecretNotFoundError, NotFoundError
from .passwords import generate_value
from .templating import render_template

logger = logging.getLogger(__name__)


def _source(spec: ValueSpec) -> str:
    if isinstance(spec, StaticValue):
        return "static"
    if isinstance(spec, TemplatedValue):
        return "templated"
    return "generated"


def render_templated_value(store: ObjectStore, spec: TemplatedValue, default_namespace: str) -> bytes:
    """Fetch the input secret of a templated value and render it.

    Raises:
        InputSecretNotFoundError: If the input secret does not exist
        TemplateError: If the template cannot be rendered
    """
    namespace = spec.input_secret_ref.namespace or default_namespace
    name = spec.input_secret_ref.name
    try:
        input_secret = store.get_secret(namespace, name)
    except NotFoundError as e:
        raise InputSecretNotFoundError(namespace, name) from e
    return render_template(spec.template, input_secret.data)


def resolve_value(store: ObjectStore, spec: ValueSpec, default_namespace: str) -> bytes:
    """Resolve a single template entry into bytes."""
    if isinstance(spec, StaticValue):
        return spec.value.encode("utf-8")
    if isinstance(spec, TemplatedValue):
        return render_templated_value(store, spec, default_namespace)
    if isinstance(spec, GeneratedValue):
        return generate_value(spec)
    raise GenerationError(f"unsupported value specification: {type(spec).__name__}")


def generate_values(
    store: ObjectStore,
    template: Mapping[str, ValueSpec],
    default_namespace: str,
) -> dict[str, bytes]:
    """Generate the payload for every entry of a template.

    Args:
        store: Object store used to read input secrets of templated values
        template: Mapping of key name to value specification
        default_namespace: Namespace used for input secrets without one

    Returns:
        Mapping of key name to value

    Raises:
        GenerationError: If any entry fails; no partial payload is returned
    """
    data: dict[str, bytes] = {}
    for key, spec in template.items():
        source = _source(spec)
        try:
            data[key] = resolve_value(store, spec, default_namespace)
        except GenerationError as e:
            metrics.values_generated_total.labels(source=source, result="error").inc()
            e.key = key
            raise
        metrics.values_generated_total.labels(source=source, result="success").inc()
    return data


def complete_payload(
    store: ObjectStore,
    template: Mapping[str, ValueSpec],
    default_namespace: str,
    existing: Mapping[str, bytes],
) -> dict[str, bytes]:
    """Bring an existing payload in line with the template.

    Existing values of keys that are still declared are kept. Keys that are no
    longer declared are dropped and newly declared keys are generated.
    """
    missing = {key: spec for key, spec in template.items() if key not in existing}
    payload = {key: value for key, value in existing.items() if key in template}
    if missing:
        logger.info(f"Generating {len(missing)} value(s) missing from the existing payload")
        payload.update(generate_values(store, missing, default_namespace))
    return payload
