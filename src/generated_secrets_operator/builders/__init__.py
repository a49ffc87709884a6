"""Builders turning CRD specs into models."""

from .generated_secret import create_generated_secret_from_body, create_generated_secret_spec

__all__ = ["create_generated_secret_from_body", "create_generated_secret_spec"]
