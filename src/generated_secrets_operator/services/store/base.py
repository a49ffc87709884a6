"""Base object store interface."""

from __future__ import annotations

from typing import Any, Protocol

from ...models import Secret


class ObjectStore(Protocol):
    """Protocol defining the object store operations the operator needs.

    Every object carries a ``uid`` and a ``resourceVersion`` assigned by the
    store. Writes that carry a resourceVersion are conditional and raise
    ``ConflictError`` when the object has changed in the meantime.
    """

    def get_secret(self, namespace: str, name: str) -> Secret:
        """Get a secret. Raises NotFoundError if it does not exist."""
        ...

    def create_secret(self, secret: Secret) -> Secret:
        """Create a secret. Raises AlreadyExistsError on a name clash."""
        ...

    def update_secret(self, secret: Secret) -> Secret:
        """Replace a secret. Raises ConflictError or NotFoundError."""
        ...

    def delete_secret(self, namespace: str, name: str) -> None:
        """Delete a secret. Raises NotFoundError if it does not exist."""
        ...

    def get_generated_secret(self, namespace: str, name: str) -> dict[str, Any]:
        """Get a GeneratedSecret body. Raises NotFoundError."""
        ...

    def update_generated_secret(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace a GeneratedSecret (metadata and spec). Raises ConflictError."""
        ...

    def update_generated_secret_status(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace the status subresource of a GeneratedSecret. Raises ConflictError."""
        ...
