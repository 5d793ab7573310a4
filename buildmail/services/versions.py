"""Latest artifact version per product line.

The drop directory is a flat list of archives such as
`Dispense-2024.03.01.zip` or `Office-9.zip`. Entries are bucketed by
product prefix and the lexicographically greatest name in each bucket is
taken as the latest build.

Producers must name archives so that lexicographic order equals release
order (zero-padded dates or version segments). `Office-10.zip` sorts
before `Office-9.zip`; that is a naming contract, not something resolved
here.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from buildmail.core.config import DEFAULT_PRODUCTS, DEFAULT_SUFFIX, TrimMode
from buildmail.core.result import Err, Ok, Result
from buildmail.services.errors import DirectoryUnavailable

__all__ = [
    "ArtifactEntry",
    "ProductBucket",
    "ResolvedVersions",
    "classify",
    "list_artifacts",
    "resolve_versions",
    "version_from_name",
]

# Left between product and version ("Dispense-1.2.zip", "Office_3.zip")
_SEPARATORS = "-_ "


@dataclass(frozen=True, slots=True)
class ArtifactEntry:
    name: str


@dataclass(frozen=True, slots=True)
class ProductBucket:
    """All artifact names that start with one product token."""

    product: str
    names: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.names

    @property
    def latest(self) -> str | None:
        """Greatest name in descending lexicographic order, None if empty."""
        if not self.names:
            return None
        return sorted(self.names, reverse=True)[0]


def _empty_versions() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class ResolvedVersions:
    """Latest version per product.

    Attributes:
        products: The product order the run was configured with
        versions: product -> version, products without artifacts are absent
    """

    products: tuple[str, ...]
    versions: dict[str, str] = field(default_factory=_empty_versions)

    def get(self, product: str) -> str | None:
        return self.versions.get(product)

    def items(self) -> list[tuple[str, str]]:
        """(product, version) pairs in product order, missing products skipped."""
        return [(p, self.versions[p]) for p in self.products if p in self.versions]

    def missing(self) -> list[str]:
        return [p for p in self.products if p not in self.versions]

    def as_list(self) -> list[str]:
        """Versions in product order with missing products dropped.

        Positions are NOT stable: when a product has no artifact every
        later product moves up one index. Use get() to look up by name.
        """
        return [v for _, v in self.items()]

    def __len__(self) -> int:
        return len(self.versions)


def list_artifacts(directory: Path) -> Result[list[ArtifactEntry], DirectoryUnavailable]:
    """List every entry of the drop directory, sorted by name."""
    try:
        names = sorted(p.name for p in directory.iterdir())
    except FileNotFoundError:
        return Err(DirectoryUnavailable(path=directory, reason="no such directory"))
    except NotADirectoryError:
        return Err(DirectoryUnavailable(path=directory, reason="not a directory"))
    except PermissionError:
        return Err(DirectoryUnavailable(path=directory, reason="permission denied"))
    except OSError as e:
        return Err(DirectoryUnavailable(path=directory, reason=str(e)))
    return Ok([ArtifactEntry(name=n) for n in names])


def classify(
    entries: Iterable[ArtifactEntry],
    products: Sequence[str] = DEFAULT_PRODUCTS,
) -> list[ProductBucket]:
    """Bucket entries by product prefix, one bucket per product in order.

    Prefixes are tested in product order and the first match wins, so with
    overlapping tokens ("Office", "OfficeTools") the earlier product takes
    the entry. Entries matching no product are ignored.
    """
    pools: dict[str, list[str]] = {p: [] for p in products}
    for entry in entries:
        for product in products:
            if entry.name.startswith(product):
                pools[product].append(entry.name)
                break
    return [ProductBucket(product=p, names=tuple(pools[p])) for p in products]


def version_from_name(
    name: str,
    product: str,
    suffix: str = DEFAULT_SUFFIX,
    mode: TrimMode = TrimMode.CHARSET,
) -> str:
    """Derive the bare version from an artifact filename.

    CHARSET mode removes any leading or trailing characters that occur in
    the product token, then in the suffix token. A version ending in one of
    those characters gets over-trimmed: `Register-1.0-zip.zip` yields `1.0`.
    EXACT mode removes the literal prefix and suffix only.

    Separator characters left between product and version are removed in
    both modes.
    """
    if mode is TrimMode.EXACT:
        trimmed = name.removeprefix(product).removesuffix(suffix)
    else:
        trimmed = name.strip(product).strip(suffix)
    return trimmed.strip(_SEPARATORS)


def resolve_versions(
    directory: Path,
    products: Sequence[str] = DEFAULT_PRODUCTS,
    suffix: str = DEFAULT_SUFFIX,
    mode: TrimMode = TrimMode.CHARSET,
) -> Result[ResolvedVersions, DirectoryUnavailable]:
    """Resolve the latest version of every product in the drop directory.

    Returns:
        Ok(ResolvedVersions) with at most one version per product
        Err(DirectoryUnavailable) if the directory cannot be listed
    """
    listed = list_artifacts(directory)
    if isinstance(listed, Err):
        return listed

    versions: dict[str, str] = {}
    for bucket in classify(listed.value, products):
        latest = bucket.latest
        if latest is None:
            continue
        versions[bucket.product] = version_from_name(latest, bucket.product, suffix, mode)

    return Ok(ResolvedVersions(products=tuple(products), versions=versions))
