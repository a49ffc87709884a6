"""Models for GeneratedSecret resources and the secrets they produce."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .constants import DEFAULT_SECRET_TYPE, DELETION_POLICY_DELETE, FINALIZER


class SecretType(str, Enum):
    """Informational kind of credential held by a GeneratedSecret."""

    OPAQUE = "Opaque"
    BINARY = "binary"
    BASIC_AUTH = "basic-auth"
    SSH_AUTH = "ssh-auth"


class DeletionPolicy(str, Enum):
    """What happens to the copies when the GeneratedSecret is deleted."""

    DELETE = "Delete"
    RETAIN = "Retain"


@dataclass(frozen=True)
class StaticValue:
    """A literal value, from either ``value`` or the deprecated ``static``."""

    value: str


@dataclass(frozen=True)
class InputSecretRef:
    """Reference to the secret a templated value reads from."""

    name: str
    namespace: str | None = None


@dataclass(frozen=True)
class TemplatedValue:
    """A value rendered from the fields of another secret."""

    template: str
    input_secret_ref: InputSecretRef


@dataclass(frozen=True)
class GeneratedValue:
    """Parameters for a randomly generated password."""

    length: int = 0
    min_length: int = 0
    max_length: int = 0
    max_symbols: int = 0
    max_digits: int = 0
    no_upper: bool = False
    no_repeat: bool = False


ValueSpec = Union[StaticValue, TemplatedValue, GeneratedValue]


@dataclass
class Secret:
    """A Kubernetes Secret as seen by the operator.

    ``uid`` and ``resource_version`` are assigned by the object store and are
    empty for secrets that have not been persisted yet.
    """

    name: str
    namespace: str
    type: str = DEFAULT_SECRET_TYPE
    data: dict[str, bytes] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    uid: str = ""
    resource_version: str = ""


@dataclass(frozen=True)
class GeneratedSecretRef:
    """Recorded pointer to one materialized copy.

    ``(type, resource_version, uid)`` is the identity fingerprint used to tell
    whether a copy has been modified outside the operator.
    """

    name: str
    namespace: str
    type: str
    resource_version: str
    uid: str

    @classmethod
    def from_secret(cls, secret: Secret) -> GeneratedSecretRef:
        return cls(
            name=secret.name,
            namespace=secret.namespace,
            type=secret.type,
            resource_version=secret.resource_version,
            uid=secret.uid,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GeneratedSecretRef:
        return cls(
            name=data.get("name", ""),
            namespace=data.get("namespace", ""),
            type=data.get("type") or DEFAULT_SECRET_TYPE,
            resource_version=data.get("resourceVersion", ""),
            uid=data.get("uid", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "type": self.type,
            "resourceVersion": self.resource_version,
            "uid": self.uid,
        }

    def matches(self, secret: Secret) -> bool:
        """Return True if the live secret still has the recorded identity."""
        return (
            secret.uid == self.uid
            and secret.resource_version == self.resource_version
            and secret.type == self.type
        )


@dataclass
class SecretMetadata:
    """Metadata applied to every generated copy."""

    name: str
    namespaces: list[str]
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    type: str = DEFAULT_SECRET_TYPE


@dataclass
class GeneratedSecretSpec:
    """Desired state of a GeneratedSecret."""

    metadata: SecretMetadata
    data: dict[str, ValueSpec] = field(default_factory=dict)
    secret_type: SecretType = SecretType.OPAQUE
    deletion_policy: DeletionPolicy = DeletionPolicy.DELETE


@dataclass
class GeneratedSecretStatus:
    """Observed state of a GeneratedSecret."""

    initialized: bool = False
    refs: list[GeneratedSecretRef] = field(default_factory=list)
    conditions: list[dict[str, Any]] = field(default_factory=list)
    observed_generation: int = 0

    @property
    def secrets_count(self) -> int:
        return len(self.refs)

    def find_ref(self, namespace: str, name: str) -> GeneratedSecretRef | None:
        for ref in self.refs:
            if ref.namespace == namespace and ref.name == name:
                return ref
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GeneratedSecretStatus:
        data = data or {}
        refs_block = data.get("secretsGeneratedRef") or {}
        return cls(
            initialized=bool(data.get("initialized", False)),
            refs=[GeneratedSecretRef.from_dict(ref) for ref in refs_block.get("secrets") or []],
            conditions=[dict(cond) for cond in data.get("conditions") or []],
            observed_generation=int(data.get("observedGeneration", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "initialized": self.initialized,
            "secretsGeneratedRef": {"secrets": [ref.to_dict() for ref in self.refs]},
            "secretsCount": self.secrets_count,
            "conditions": self.conditions,
            "observedGeneration": self.observed_generation,
        }


@dataclass
class GeneratedSecret:
    """A GeneratedSecret custom resource as loaded from the object store."""

    name: str
    namespace: str
    uid: str
    generation: int
    spec: GeneratedSecretSpec
    status: GeneratedSecretStatus
    body: dict[str, Any]

    @property
    def meta(self) -> dict[str, Any]:
        return self.body.get("metadata", {})

    @property
    def finalizers(self) -> list[str]:
        return list(self.meta.get("finalizers") or [])

    @property
    def being_deleted(self) -> bool:
        return bool(self.meta.get("deletionTimestamp"))

    @property
    def has_finalizer(self) -> bool:
        return FINALIZER in self.finalizers

    @property
    def secret_name(self) -> str:
        return self.spec.metadata.name

    @property
    def deletes_copies(self) -> bool:
        return self.spec.deletion_policy.value == DELETION_POLICY_DELETE
