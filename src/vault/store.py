"""
Filesystem-backed vault of markdown documents.

Owns every read and write of document text. Frontmatter updates go through
process_frontmatter(), a per-document read-modify-write that:
- serializes concurrent updates to the same document with a per-path lock
- writes nothing when the mutation reports no change
- replaces the file atomically (write to *.part, then os.replace)
"""

import os
import threading
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, Iterable, List, Optional

from src.shared.observability import get_logger

from .errors import DocumentNotFound, MetadataParseError, StoreIOError
from .frontmatter import (
    FrontmatterError,
    detect_newline,
    render_frontmatter,
    split_frontmatter,
)

logger = get_logger(__name__)

FrontmatterMutation = Callable[[Dict[str, Any]], bool]


@dataclass(frozen=True)
class Document:
    """A markdown document, identified by its vault-relative POSIX path."""

    path: str

    @property
    def name(self) -> str:
        """Short name: file name without extension"""
        return PurePosixPath(self.path).stem

    @property
    def folder(self) -> str:
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lstrip(".").lower()


class VaultStore:
    """Reads and writes markdown documents below a vault root."""

    def __init__(
        self,
        root: Path,
        ignore_folders: Optional[Iterable[str]] = None,
        extension: str = "md",
    ):
        self.root = Path(root).expanduser().resolve()
        self.ignore_folders = set(ignore_folders or ())
        self.extension = extension.lstrip(".").lower()

        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def list_documents(self) -> List[Document]:
        """All documents with the vault extension, outside ignored folders."""
        documents = []
        for file_path in self.root.rglob(f"*.{self.extension}"):
            if not file_path.is_file():
                continue
            rel_path = file_path.relative_to(self.root)
            if any(part in self.ignore_folders for part in rel_path.parts[:-1]):
                continue
            documents.append(Document(path=rel_path.as_posix()))

        documents.sort(key=lambda doc: doc.path)
        return documents

    def get_document(self, path: str) -> Document:
        """Look up a document by vault-relative path."""
        rel_path = self.relative_path(path)
        if not (self.root / rel_path).is_file():
            raise DocumentNotFound(rel_path)
        return Document(path=rel_path)

    def relative_path(self, path: str) -> str:
        """
        Normalize an absolute or vault-relative path to vault-relative POSIX form.

        Raises:
            DocumentNotFound: The path points outside the vault root
        """
        try:
            rel_path = (self.root / path).resolve().relative_to(self.root)
        except ValueError:
            raise DocumentNotFound(str(path)) from None
        return rel_path.as_posix()

    # ------------------------------------------------------------------
    # Reads and writes
    # ------------------------------------------------------------------

    def read_text(self, path: str) -> str:
        """Full text of a document, line endings untranslated."""
        path = self.relative_path(path)
        try:
            with open(self.root / path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            raise DocumentNotFound(path)
        except (OSError, UnicodeDecodeError) as e:
            raise StoreIOError(path, f"read failed: {e}") from e

    def read_frontmatter(self, path: str) -> Dict[str, Any]:
        """Parsed frontmatter of a document ({} when it has none)."""
        try:
            metadata, _ = split_frontmatter(self.read_text(path))
        except FrontmatterError as e:
            raise MetadataParseError(path, str(e)) from e
        return metadata or {}

    def process_frontmatter(self, path: str, mutate: FrontmatterMutation) -> bool:
        """
        Apply mutate to a document's frontmatter and write it back if changed.

        Args:
            path: Vault-relative path of the document
            mutate: Receives the frontmatter mapping (empty if the document has
                none) and edits it in place; returns True if it changed anything

        Returns:
            Whether the document was rewritten

        Raises:
            DocumentNotFound: The document does not exist
            MetadataParseError: The existing frontmatter is malformed
            StoreIOError: Reading or writing failed
        """
        path = self.relative_path(path)
        with self._lock_for(path):
            raw_text = self.read_text(path)
            try:
                metadata, body = split_frontmatter(raw_text)
            except FrontmatterError as e:
                raise MetadataParseError(path, str(e)) from e

            if metadata is None:
                metadata = {}
                # New block goes above the untouched body
                body = raw_text

            if not mutate(metadata):
                return False

            newline = detect_newline(raw_text)
            self._write_atomic(path, render_frontmatter(metadata, body, newline=newline))
            logger.debug("Frontmatter updated", path=path)
            return True

    def _write_atomic(self, path: str, content: str) -> None:
        file_path = self.root / path
        part = file_path.with_name(file_path.name + ".part")
        try:
            with open(part, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(part, file_path)
        except OSError as e:
            part.unlink(missing_ok=True)
            raise StoreIOError(path, f"write failed: {e}") from e

    def _lock_for(self, path: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = self._locks[path] = threading.Lock()
            return lock
