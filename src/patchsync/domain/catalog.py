"""The local, authoritative set of patch files."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .model import PackageIdentity, PatchFile, PatchFileNameError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

log = getLogger(__name__)


class CatalogError(RuntimeError):
    """Raised when the local catalog cannot be loaded."""


@dataclass(slots=True, frozen=True)
class PatchCatalog:
    """Immutable, ordered collection of canonical patch files."""

    patches: tuple[PatchFile, ...] = ()

    def __iter__(self) -> Iterator[PatchFile]:
        return iter(self.patches)

    def __len__(self) -> int:
        return len(self.patches)

    def select(self, names: Iterable[str]) -> PatchCatalog:
        """Restrict the catalog to the given package names (escaped or display form)."""

        wanted = set(names)
        if not wanted:
            return self
        return PatchCatalog(
            tuple(
                patch
                for patch in self.patches
                if patch.identity.name in wanted or patch.identity.display_name in wanted
            )
        )


def load_catalog(directory: Path, *, patch_dir: str = "patches") -> PatchCatalog:
    """Read every patch file in ``directory``.

    Canonical paths are expressed relative to the target repositories, i.e.
    ``<patch_dir>/<filename>``. Hidden files and subdirectories are ignored,
    unparsable names are logged and skipped. Two files for the same package
    are a catalog error since a package must converge to exactly one file.
    """

    if not directory.is_dir():
        raise CatalogError(f"Patch catalog directory not found: {directory}")

    prefix = patch_dir.strip("/")
    patches: list[PatchFile] = []
    seen: dict[str, str] = {}
    for path in sorted(directory.iterdir(), key=lambda item: item.name):
        if path.name.startswith(".") or not path.is_file():
            continue
        try:
            identity = PackageIdentity.from_filename(path.name)
        except PatchFileNameError as exc:
            log.warning("Skipping %s: %s", path.name, exc)
            continue
        if identity.name in seen:
            raise CatalogError(
                f"Package {identity.display_name} has more than one patch file: "
                f"{seen[identity.name]}, {path.name}"
            )
        seen[identity.name] = path.name
        patches.append(
            PatchFile(
                identity=identity,
                canonical_path=f"{prefix}/{path.name}",
                content=path.read_bytes(),
            )
        )

    log.debug("Loaded %s patch files from %s", len(patches), directory)
    return PatchCatalog(tuple(patches))
