"""
Wikilink resolution against the vault.

Maps the identifier inside [[...]] plus the linking document's path to a
single target document, or None when nothing (or more than one thing)
matches. Rules, in order:

1. Subpaths are ignored: "Note#Heading" and "Note#^block" resolve as "Note";
   a bare "#Heading" points at the linking document itself.
2. A link containing "/" is tried as a vault path, then relative to the
   linking document's folder, then as a unique path suffix.
3. A bare name matches file names case-insensitively. Several matches are
   narrowed to exact-case matches, then to matches in the linking document's
   folder; anything still ambiguous is unresolved.
"""

import posixpath
from collections import defaultdict
from typing import Dict, List, Optional, Protocol

from src.shared.observability import get_logger

from .store import Document, VaultStore

logger = get_logger(__name__)


class Resolver(Protocol):
    def refresh(self) -> None:
        """Re-read the set of documents links can point at."""

    def resolve(self, token: str, source_path: str) -> Optional[str]:
        """Vault-relative path of the target document, or None."""


class LinkResolver:
    """Resolver backed by a VaultStore listing, rebuilt on refresh()."""

    def __init__(self, store: VaultStore):
        self.store = store
        self._by_path: Dict[str, Document] = {}
        self._by_name: Dict[str, List[Document]] = {}
        self._loaded = False

    def refresh(self) -> None:
        by_path: Dict[str, Document] = {}
        by_name: Dict[str, List[Document]] = defaultdict(list)
        for doc in self.store.list_documents():
            by_path[doc.path] = doc
            by_name[doc.name.casefold()].append(doc)

        self._by_path = by_path
        self._by_name = dict(by_name)
        self._loaded = True
        logger.debug("Link index rebuilt", documents=len(by_path))

    def resolve(self, token: str, source_path: str) -> Optional[str]:
        if not self._loaded:
            self.refresh()

        linkpath = token.split("#", 1)[0].strip()
        if not linkpath:
            return source_path if source_path in self._by_path else None

        if "/" in linkpath:
            return self._resolve_path(linkpath, source_path)
        return self._resolve_name(linkpath, source_path)

    def _resolve_path(self, linkpath: str, source_path: str) -> Optional[str]:
        source_folder = posixpath.dirname(source_path)
        candidates = [
            linkpath.lstrip("/"),
            posixpath.normpath(posixpath.join(source_folder, linkpath)),
        ]
        for candidate in candidates:
            for path in (candidate, self._with_extension(candidate)):
                if path in self._by_path:
                    return path

        suffix = "/" + self._with_extension(linkpath.lstrip("/"))
        matches = [path for path in self._by_path if path.endswith(suffix)]
        if len(matches) == 1:
            return matches[0]
        if matches:
            logger.debug("Ambiguous link path", link=linkpath, candidates=matches)
        return None

    def _resolve_name(self, name: str, source_path: str) -> Optional[str]:
        stem = name
        suffix = "." + self.store.extension
        if stem.lower().endswith(suffix):
            stem = stem[: -len(suffix)]

        matches = self._by_name.get(stem.casefold(), [])
        if len(matches) == 1:
            return matches[0].path
        if not matches:
            return None

        exact = [doc for doc in matches if doc.name == stem]
        if len(exact) == 1:
            return exact[0].path

        source_folder = posixpath.dirname(source_path)
        local = [doc for doc in (exact or matches) if doc.folder == source_folder]
        if len(local) == 1:
            return local[0].path

        logger.debug(
            "Ambiguous link name",
            link=name,
            candidates=[doc.path for doc in matches],
        )
        return None

    def _with_extension(self, path: str) -> str:
        suffix = "." + self.store.extension
        return path if path.lower().endswith(suffix) else path + suffix
