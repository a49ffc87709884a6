"""Builder for GeneratedSecret models from CRD bodies."""

from __future__ import annotations

from typing import Any

from ..constants import DEFAULT_SECRET_TYPE
from ..models import (
    DeletionPolicy,
    GeneratedSecret,
    GeneratedSecretSpec,
    GeneratedSecretStatus,
    GeneratedValue,
    InputSecretRef,
    SecretMetadata,
    SecretType,
    StaticValue,
    TemplatedValue,
    ValueSpec,
)
from ..utils.errors import ValidationError

_GENERATED_INT_FIELDS = {
    "length": "length",
    "minLength": "min_length",
    "maxLength": "max_length",
    "maxSymbols": "max_symbols",
    "maxDigits": "max_digits",
}


def _object(value: Any, path: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{path} must be an object")
    return value


def _non_negative_int(key: str, field_name: str, value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"template.data.{key}.generated.{field_name} must be a non-negative integer")
    return value


def build_generated_value(key: str, generated: dict[str, Any]) -> GeneratedValue:
    """Create GeneratedValue parameters from a ``generated`` block."""
    kwargs: dict[str, Any] = {
        attr: _non_negative_int(key, name, generated.get(name))
        for name, attr in _GENERATED_INT_FIELDS.items()
    }
    kwargs["no_upper"] = bool(generated.get("noUpperCaseValues", generated.get("noUpper", False)))
    kwargs["no_repeat"] = bool(generated.get("noRepeatedValues", generated.get("noRepeat", False)))
    return GeneratedValue(**kwargs)


def build_templated_value(key: str, templated: dict[str, Any]) -> TemplatedValue:
    """Create a TemplatedValue from a ``templated`` block."""
    ref = _object(templated.get("inputSecretRef"), f"template.data.{key}.templated.inputSecretRef")
    if not ref.get("name"):
        raise ValidationError(f"template.data.{key}.templated.inputSecretRef.name is required")
    return TemplatedValue(
        template=templated.get("template") or "",
        input_secret_ref=InputSecretRef(name=ref["name"], namespace=ref.get("namespace") or None),
    )


def build_value_spec(key: str, item: dict[str, Any]) -> ValueSpec:
    """Resolve which variant of a template entry is populated.

    Variants are checked in the order value, static, templated, generated.
    Exactly one of them must be set.

    Raises:
        ValidationError: If no variant or more than one variant is set
    """
    if not isinstance(item, dict):
        raise ValidationError(f"template.data.{key} must be an object")

    static = _object(item.get("static"), f"template.data.{key}.static")
    candidates: list[tuple[str, Any]] = []
    if item.get("value"):
        candidates.append(("value", StaticValue(str(item["value"]))))
    if static.get("value"):
        candidates.append(("static", StaticValue(str(static["value"]))))
    if item.get("templated") is not None:
        candidates.append(("templated", item["templated"]))
    if item.get("generated") is not None:
        candidates.append(("generated", item["generated"]))

    if not candidates:
        raise ValidationError(f"template.data.{key} must set one of value, static, templated or generated")
    if len(candidates) > 1:
        names = ", ".join(name for name, _ in candidates)
        raise ValidationError(f"template.data.{key} sets more than one value source: {names}")

    variant, payload = candidates[0]
    if variant == "templated":
        return build_templated_value(key, _object(payload, f"template.data.{key}.templated"))
    if variant == "generated":
        return build_generated_value(key, _object(payload, f"template.data.{key}.generated"))
    return payload


def _build_namespaces(namespaces: Any) -> list[str]:
    if namespaces is None:
        return []
    if not isinstance(namespaces, list) or not all(isinstance(ns, str) and ns for ns in namespaces):
        raise ValidationError("metadata.namespaces must be a list of namespace names")
    return sorted(set(namespaces))


def _section(value: Any, path: str, strict: bool) -> dict[str, Any]:
    try:
        return _object(value, path)
    except ValidationError:
        if strict:
            raise
        return {}


def create_generated_secret_spec(
    spec: dict[str, Any],
    meta: dict[str, Any],
    strict: bool = True,
) -> GeneratedSecretSpec:
    """Create a GeneratedSecretSpec from the CRD spec.

    Args:
        spec: GeneratedSecret CRD spec
        meta: GeneratedSecret metadata (the copy name defaults to the resource name)
        strict: When False, problems in the value template are ignored so a
            resource with a broken spec can still be cleaned up

    Returns:
        Parsed spec

    Raises:
        ValidationError: If the spec is malformed and ``strict`` is set
    """
    secret_meta = _section(spec.get("metadata"), "metadata", strict)
    try:
        namespaces = _build_namespaces(secret_meta.get("namespaces"))
    except ValidationError:
        if strict:
            raise
        namespaces = []

    if strict and not namespaces:
        raise ValidationError("metadata.namespaces must contain at least one namespace")

    metadata = SecretMetadata(
        name=secret_meta.get("name") or meta.get("name", ""),
        namespaces=namespaces,
        labels=dict(_section(secret_meta.get("labels"), "metadata.labels", strict)),
        annotations=dict(_section(secret_meta.get("annotations"), "metadata.annotations", strict)),
        type=secret_meta.get("type") or DEFAULT_SECRET_TYPE,
    )

    raw_policy = spec.get("deletionPolicy") or DeletionPolicy.DELETE.value
    try:
        deletion_policy = DeletionPolicy(raw_policy)
    except ValueError:
        if strict:
            raise ValidationError(f"deletionPolicy must be Delete or Retain, got '{raw_policy}'") from None
        # Never delete copies when the policy cannot be understood
        deletion_policy = DeletionPolicy.RETAIN

    try:
        secret_type = SecretType(spec.get("secretType") or SecretType.OPAQUE.value)
    except ValueError:
        secret_type = SecretType.OPAQUE

    data: dict[str, ValueSpec] = {}
    template = _section(spec.get("template"), "template", strict)
    template_data = _section(template.get("data"), "template.data", strict)
    for key, item in template_data.items():
        try:
            data[key] = build_value_spec(key, item)
        except ValidationError:
            if strict:
                raise

    return GeneratedSecretSpec(
        metadata=metadata,
        data=data,
        secret_type=secret_type,
        deletion_policy=deletion_policy,
    )


def create_generated_secret_from_body(body: dict[str, Any], strict: bool = True) -> GeneratedSecret:
    """Create a GeneratedSecret model from a full CRD body."""
    meta = body.get("metadata") or {}
    return GeneratedSecret(
        name=meta.get("name", ""),
        namespace=meta.get("namespace", "default"),
        uid=meta.get("uid", ""),
        generation=int(meta.get("generation", 0) or 0),
        spec=create_generated_secret_spec(body.get("spec") or {}, meta, strict=strict),
        status=GeneratedSecretStatus.from_dict(body.get("status")),
        body=body,
    )
