"""Registry collaborators."""

from .service import ContractRegistry, InMemoryRegistry, Registry, RegistryUnavailable, build_registry

__all__ = [
    "ContractRegistry",
    "InMemoryRegistry",
    "Registry",
    "RegistryUnavailable",
    "build_registry",
]
