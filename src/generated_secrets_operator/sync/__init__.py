"""Classification and synchronization of generated secret copies."""

from .classifier import classify
from .synchronizer import SecretSynchronizer, build_secret, is_owned_by, ownership_labels

__all__ = ["classify", "SecretSynchronizer", "build_secret", "is_owned_by", "ownership_labels"]
