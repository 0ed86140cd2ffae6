# Vault document store, link resolution and change watching
from .errors import DocumentNotFound, MetadataParseError, StoreIOError, VaultError
from .resolver import LinkResolver, Resolver
from .store import Document, VaultStore
from .watcher import VaultEventHandler, VaultWatcher

__all__ = [
    "Document",
    "DocumentNotFound",
    "LinkResolver",
    "MetadataParseError",
    "Resolver",
    "StoreIOError",
    "VaultError",
    "VaultEventHandler",
    "VaultStore",
    "VaultWatcher",
]
