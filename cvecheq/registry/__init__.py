"""Registry client: PyPI metadata and advisory discovery lookups."""

from cvecheq.registry.client import RegistryClient

__all__ = ["RegistryClient"]
