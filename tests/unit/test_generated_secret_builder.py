"""Tests for the GeneratedSecret builder."""

from __future__ import annotations

import pytest

from generated_secrets_operator.builders.generated_secret import (
    build_value_spec,
    create_generated_secret_from_body,
    create_generated_secret_spec,
)
from generated_secrets_operator.constants import FINALIZER
from generated_secrets_operator.models import (
    DeletionPolicy,
    GeneratedValue,
    InputSecretRef,
    SecretType,
    StaticValue,
    TemplatedValue,
)
from generated_secrets_operator.utils.errors import ValidationError


class TestBuildValueSpec:
    """Test cases for build_value_spec."""

    def test_value(self):
        """Test a literal value."""
        assert build_value_spec("K", {"value": "v"}) == StaticValue("v")

    def test_deprecated_static(self):
        """Test the deprecated static form."""
        assert build_value_spec("K", {"static": {"value": "v"}}) == StaticValue("v")

    def test_templated(self):
        """Test a templated value with default namespace."""
        spec = build_value_spec(
            "K", {"templated": {"template": "{{ Ref.a }}", "inputSecretRef": {"name": "in"}}}
        )
        assert spec == TemplatedValue("{{ Ref.a }}", InputSecretRef(name="in", namespace=None))

    def test_templated_requires_input_secret(self):
        """Test that a templated value needs an input secret name."""
        with pytest.raises(ValidationError, match="inputSecretRef.name"):
            build_value_spec("K", {"templated": {"template": "x"}})

    def test_generated_with_aliases(self):
        """Test generated parameters including the short aliases."""
        spec = build_value_spec(
            "K",
            {"generated": {"length": 12, "maxDigits": 2, "noUpper": True, "noRepeatedValues": True}},
        )
        assert spec == GeneratedValue(length=12, max_digits=2, no_upper=True, no_repeat=True)

    def test_generated_rejects_negative(self):
        """Test that negative lengths are rejected."""
        with pytest.raises(ValidationError):
            build_value_spec("K", {"generated": {"length": -1}})

    def test_empty_value_counts_as_unset(self):
        """Test that an empty string value falls through to the next variant."""
        assert build_value_spec("K", {"value": "", "generated": {"length": 4}}) == GeneratedValue(length=4)

    def test_no_variant(self):
        """Test that an entry without a variant is rejected."""
        with pytest.raises(ValidationError, match="must set one of"):
            build_value_spec("K", {})

    def test_multiple_variants(self):
        """Test that an entry with two variants is rejected."""
        with pytest.raises(ValidationError, match="more than one"):
            build_value_spec("K", {"value": "v", "generated": {"length": 4}})

    @pytest.mark.parametrize(
        "item, path",
        [
            ({"static": "v"}, "template.data.K.static"),
            ({"generated": 12}, "template.data.K.generated"),
            ({"templated": "x"}, "template.data.K.templated"),
            ({"templated": {"template": "x", "inputSecretRef": "db"}}, "template.data.K.templated.inputSecretRef"),
        ],
    )
    def test_non_object_blocks_rejected(self, item, path):
        """Test that nested blocks of the wrong type are validation errors."""
        with pytest.raises(ValidationError, match=f"{path} must be an object"):
            build_value_spec("K", item)


class TestCreateGeneratedSecretSpec:
    """Test cases for create_generated_secret_spec."""

    def test_defaults(self):
        """Test defaults for name, type and deletion policy."""
        spec = create_generated_secret_spec(
            {"metadata": {"namespaces": ["b", "a", "b"]}, "template": {"data": {"K": {"value": "v"}}}},
            {"name": "creds"},
        )

        assert spec.metadata.name == "creds"
        assert spec.metadata.namespaces == ["a", "b"]
        assert spec.metadata.type == "Opaque"
        assert spec.deletion_policy == DeletionPolicy.DELETE
        assert spec.secret_type == SecretType.OPAQUE
        assert spec.data == {"K": StaticValue("v")}

    def test_empty_namespaces_rejected(self):
        """Test that an empty target namespace set is a validation error."""
        with pytest.raises(ValidationError, match="at least one namespace"):
            create_generated_secret_spec({"metadata": {"namespaces": []}}, {"name": "creds"})

    def test_invalid_deletion_policy(self):
        """Test that an unknown deletion policy is rejected."""
        with pytest.raises(ValidationError, match="deletionPolicy"):
            create_generated_secret_spec(
                {"metadata": {"namespaces": ["a"]}, "deletionPolicy": "Orphan"},
                {"name": "creds"},
            )

    def test_lenient_parse_retains_on_bad_policy(self):
        """Test that a lenient parse never deletes on an unknown policy."""
        spec = create_generated_secret_spec(
            {"metadata": {"namespaces": []}, "deletionPolicy": "Orphan", "template": {"data": {"K": {}}}},
            {"name": "creds"},
            strict=False,
        )

        assert spec.deletion_policy == DeletionPolicy.RETAIN
        assert spec.data == {}

    def test_lenient_parse_tolerates_malformed_sections(self):
        """Test that a lenient parse skips sections of the wrong shape."""
        spec = create_generated_secret_spec(
            {
                "metadata": {"namespaces": ["a"], "labels": ["x"]},
                "template": {"data": {"K": {"generated": "long"}, "U": {"value": "u"}}},
            },
            {"name": "creds"},
            strict=False,
        )

        assert spec.metadata.labels == {}
        assert spec.data == {"U": StaticValue("u")}

    def test_strict_parse_rejects_malformed_template(self):
        """Test that a strict parse reports a non-object template."""
        with pytest.raises(ValidationError, match="template must be an object"):
            create_generated_secret_spec({"metadata": {"namespaces": ["a"]}, "template": "x"}, {"name": "creds"})


class TestCreateGeneratedSecretFromBody:
    """Test cases for create_generated_secret_from_body."""

    def test_from_body(self):
        """Test building the model from a full body with status."""
        body = {
            "metadata": {
                "name": "creds",
                "namespace": "apps",
                "uid": "u-1",
                "generation": 3,
                "finalizers": [FINALIZER],
            },
            "spec": {"metadata": {"namespaces": ["a"]}, "template": {"data": {"K": {"value": "v"}}}},
            "status": {
                "initialized": True,
                "secretsGeneratedRef": {
                    "secrets": [
                        {"name": "creds", "namespace": "a", "type": "Opaque", "resourceVersion": "7", "uid": "s-1"}
                    ]
                },
            },
        }

        resource = create_generated_secret_from_body(body)

        assert resource.name == "creds"
        assert resource.generation == 3
        assert resource.has_finalizer
        assert not resource.being_deleted
        assert resource.status.initialized
        assert resource.status.secrets_count == 1
        assert resource.status.refs[0].resource_version == "7"
        assert resource.deletes_copies
