"""Repository interfaces for TaskFlow.

This package contains abstract base classes (ABCs) that define the contracts
for persistence. These are the "Ports" in the Hexagonal Architecture.

Implementations (Adapters) are in:
- taskflow_cli.adapters.memory (in-process, used by tests)
- taskflow_cli.adapters.sqlite (local storage)
- taskflow_cli.adapters.token_jar (remember-token file)
"""

from .kv_store import GUEST_SCOPE, NAMESPACE, KeyValueStore, StorageKeys
from .token_jar import TokenJar

__all__ = [
    "KeyValueStore",
    "StorageKeys",
    "TokenJar",
    "GUEST_SCOPE",
    "NAMESPACE",
]
