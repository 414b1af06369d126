"""OASIS XML catalog discovery and lookup.

The transform resolves DTDs, ``xsl:import`` targets and ``document()`` calls
through a semicolon-joined list of catalog files: the catalog bundled with this
package followed by every ``catalog.xml`` found at the root of a ``sys.path``
entry.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from importlib import resources
import logging
from pathlib import Path
import sys
from urllib.parse import urljoin, urlparse
from urllib.request import url2pathname

from lxml import etree

from ..exceptions import CatalogError


logger = logging.getLogger(__name__)

_DATA_PACKAGE = "docbook_reference.data"
BUNDLED_CATALOG = "catalog.xml"
CATALOG_FILE_NAME = "catalog.xml"
CATALOG_NAMESPACE = "urn:oasis:names:tc:entity:xmlns:xml:catalog"
_XML_BASE = "{http://www.w3.org/XML/1998/namespace}base"

# element -> (rule, identifier kind, match attribute, target attribute)
_ENTRY_TYPES: dict[str, tuple[str, str, str, str]] = {
    "system": ("exact", "system", "systemId", "uri"),
    "public": ("exact", "public", "publicId", "uri"),
    "uri": ("exact", "uri", "name", "uri"),
    "rewriteSystem": ("rewrite", "system", "systemIdStartString", "rewritePrefix"),
    "rewriteURI": ("rewrite", "uri", "uriStartString", "rewritePrefix"),
    "systemSuffix": ("suffix", "system", "systemIdSuffix", "uri"),
    "uriSuffix": ("suffix", "uri", "uriSuffix", "uri"),
    "delegatePublic": ("delegate", "public", "publicIdStartString", "catalog"),
    "delegateSystem": ("delegate", "system", "systemIdStartString", "catalog"),
    "delegateURI": ("delegate", "uri", "uriStartString", "catalog"),
}


@dataclass(slots=True)
class CatalogManager:
    """Ordered catalog file list handed to the transform runner."""

    catalog_files: list[str]
    ignore_missing_properties: bool = True

    @property
    def catalog_files_property(self) -> str:
        """Return the catalog list in its semicolon-joined form."""
        return ";".join(self.catalog_files)

    @classmethod
    def from_property(cls, value: str, *, ignore_missing_properties: bool = True) -> CatalogManager:
        files = [item.strip() for item in value.split(";") if item.strip()]
        return cls(catalog_files=files, ignore_missing_properties=ignore_missing_properties)


def _as_url(location: str | Path) -> str:
    if isinstance(location, Path):
        return location.resolve().as_uri()
    if urlparse(location).scheme in {"", None} or len(urlparse(location).scheme) == 1:
        return Path(location).resolve().as_uri()
    return location


def url_to_path(url: str) -> str:
    """Return a local filename for ``file:`` URLs and ``url`` unchanged otherwise."""
    parsed = urlparse(url)
    if parsed.scheme == "file":
        return url2pathname(parsed.path)
    return url


def bundled_catalog_url() -> str:
    """Return the URL of the catalog shipped with this package."""
    resource = resources.files(_DATA_PACKAGE) / BUNDLED_CATALOG
    if not resource.is_file():
        raise CatalogError(
            f"DocBook catalog {BUNDLED_CATALOG} could not be found in {_DATA_PACKAGE}"
        )
    return Path(str(resource)).resolve().as_uri()


def discover_catalogs(search_path: Iterable[str] | None = None) -> list[str]:
    """Return URLs of every ``catalog.xml`` at the root of ``search_path`` entries."""
    entries = sys.path if search_path is None else search_path
    urls: list[str] = []
    for entry in entries:
        root = Path(entry or ".")
        candidate = root / CATALOG_FILE_NAME
        if candidate.is_file():
            url = candidate.resolve().as_uri()
            if url not in urls:
                urls.append(url)
    return urls


def create_catalog_manager(
    *,
    search_path: Iterable[str] | None = None,
    extra_catalogs: Iterable[str | Path] = (),
) -> CatalogManager:
    """Build the catalog list: bundled catalog, discovered catalogs, then extras."""
    files = [bundled_catalog_url()]
    for url in [*discover_catalogs(search_path), *(_as_url(item) for item in extra_catalogs)]:
        if url not in files:
            files.append(url)
    manager = CatalogManager(catalog_files=files)
    logger.debug("Using XML catalogs: %s", manager.catalog_files_property)
    return manager


@dataclass(slots=True)
class CatalogEntries:
    """Rules declared by a single catalog file."""

    exact: dict[str, dict[str, str]] = field(default_factory=lambda: defaultdict(dict))
    rewrite: dict[str, list[tuple[str, str]]] = field(default_factory=lambda: defaultdict(list))
    suffix: dict[str, list[tuple[str, str]]] = field(default_factory=lambda: defaultdict(list))
    delegate: dict[str, list[tuple[str, str]]] = field(default_factory=lambda: defaultdict(list))
    next_catalogs: list[str] = field(default_factory=list)

    def match(self, kind: str, identifier: str) -> str | None:
        """Return the target of the best rule of this catalog for ``identifier``."""
        exact = self.exact[kind].get(identifier)
        if exact is not None:
            return exact

        rewrites = [rule for rule in self.rewrite[kind] if identifier.startswith(rule[0])]
        if rewrites:
            prefix, replacement = max(rewrites, key=lambda rule: len(rule[0]))
            return replacement + identifier[len(prefix):]

        suffixes = [rule for rule in self.suffix[kind] if identifier.endswith(rule[0])]
        if suffixes:
            return max(suffixes, key=lambda rule: len(rule[0]))[1]
        return None

    def delegates(self, kind: str, identifier: str) -> list[str]:
        """Return delegated catalogs for ``identifier``, longest prefix first."""
        matches = [rule for rule in self.delegate[kind] if identifier.startswith(rule[0])]
        matches.sort(key=lambda rule: len(rule[0]), reverse=True)
        return [catalog for _, catalog in matches]


def parse_catalog(root: etree._Element, url: str) -> CatalogEntries:
    """Collect the rules of the catalog document rooted at ``root``."""
    entries = CatalogEntries()
    base = urljoin(url, root.get(_XML_BASE)) if root.get(_XML_BASE) else url
    _collect(root, base, entries)
    return entries


def _collect(element: etree._Element, base: str, entries: CatalogEntries) -> None:
    for child in element:
        if not isinstance(child.tag, str):
            continue
        qname = etree.QName(child)
        if qname.namespace != CATALOG_NAMESPACE:
            continue
        child_base = urljoin(base, child.get(_XML_BASE)) if child.get(_XML_BASE) else base

        if qname.localname == "group":
            _collect(child, child_base, entries)
            continue
        if qname.localname == "nextCatalog":
            target = child.get("catalog")
            if target:
                entries.next_catalogs.append(urljoin(child_base, target))
            continue

        entry_type = _ENTRY_TYPES.get(qname.localname)
        if entry_type is None:
            continue
        rule, kind, key_attribute, target_attribute = entry_type
        key = child.get(key_attribute)
        target = child.get(target_attribute)
        if not key or not target:
            continue
        resolved = urljoin(child_base, target)
        if rule == "exact":
            entries.exact[kind].setdefault(key, resolved)
        else:
            getattr(entries, rule)[kind].append((key, resolved))


class Catalog:
    """Resolve system identifiers, public identifiers and URIs via OASIS catalogs."""

    def __init__(self, catalog_files: Sequence[str], *, ignore_missing: bool = True) -> None:
        self._files = list(catalog_files)
        self._ignore_missing = ignore_missing
        self._cache: dict[str, CatalogEntries | None] = {}

    @classmethod
    def from_manager(cls, manager: CatalogManager) -> Catalog:
        return cls(manager.catalog_files, ignore_missing=manager.ignore_missing_properties)

    @property
    def catalog_files(self) -> list[str]:
        return list(self._files)

    def resolve(self, system_id: str | None, public_id: str | None = None) -> str | None:
        """Return the catalog target for an external resource, if any."""
        if system_id:
            resolved = self.resolve_system(system_id) or self.resolve_uri(system_id)
            if resolved is not None:
                return resolved
        if public_id:
            return self.resolve_public(public_id)
        return None

    def resolve_system(self, system_id: str) -> str | None:
        return self._lookup(self._files, "system", system_id, set())

    def resolve_public(self, public_id: str) -> str | None:
        return self._lookup(self._files, "public", public_id, set())

    def resolve_uri(self, uri: str) -> str | None:
        return self._lookup(self._files, "uri", uri, set())

    def _lookup(
        self,
        files: Sequence[str],
        kind: str,
        identifier: str,
        visited: set[str],
    ) -> str | None:
        for url in files:
            if url in visited:
                continue
            visited.add(url)
            entries = self._load(url)
            if entries is None:
                continue

            resolved = entries.match(kind, identifier)
            if resolved is not None:
                return resolved

            delegates = entries.delegates(kind, identifier)
            if delegates:
                return self._lookup(delegates, kind, identifier, visited)

            resolved = self._lookup(entries.next_catalogs, kind, identifier, visited)
            if resolved is not None:
                return resolved
        return None

    def _load(self, url: str) -> CatalogEntries | None:
        if url in self._cache:
            return self._cache[url]

        parser = etree.XMLParser(load_dtd=False, no_network=True, resolve_entities=False)
        try:
            document = etree.parse(url_to_path(url), parser)
        except (OSError, etree.XMLSyntaxError) as exc:
            if not self._ignore_missing:
                raise CatalogError(f"Unable to read XML catalog {url}: {exc}") from exc
            logger.debug("Skipping unreadable XML catalog %s: %s", url, exc)
            entries = None
        else:
            entries = parse_catalog(document.getroot(), url)

        self._cache[url] = entries
        return entries


__all__ = [
    "BUNDLED_CATALOG",
    "CATALOG_FILE_NAME",
    "CATALOG_NAMESPACE",
    "Catalog",
    "CatalogEntries",
    "CatalogManager",
    "bundled_catalog_url",
    "create_catalog_manager",
    "discover_catalogs",
    "parse_catalog",
    "url_to_path",
]
