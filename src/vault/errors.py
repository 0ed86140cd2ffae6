"""Failures raised by the vault store."""


class VaultError(Exception):
    """Base class for document store failures."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class DocumentNotFound(VaultError):
    """The document does not exist in the vault."""

    def __init__(self, path: str):
        super().__init__(path, "document not found")


class StoreIOError(VaultError):
    """Reading or writing a document failed."""


class MetadataParseError(VaultError):
    """The document's frontmatter block is not a valid YAML mapping."""
