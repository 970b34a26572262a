"""Local patch identities and canonical patch files."""

from __future__ import annotations

from dataclasses import dataclass, field
from posixpath import basename


class PatchFileNameError(ValueError):
    """Raised when a file name does not follow ``<identity>+<version>.<ext>``."""


@dataclass(slots=True, frozen=True, order=True)
class PackageIdentity:
    """Package name and version as encoded in a patch file name.

    ``name`` keeps the escaped form used on disk, e.g. ``@scope+pkg`` for the
    scoped npm package ``@scope/pkg``.
    """

    name: str
    version: str

    def __post_init__(self) -> None:
        if not self.name:
            raise PatchFileNameError("Package name must not be empty")
        if not self.version:
            raise PatchFileNameError(f"Package version must not be empty for {self.name}")

    @classmethod
    def from_filename(cls, filename: str) -> PackageIdentity:
        stem = basename(filename)
        dot = stem.rfind(".")
        if dot > 0:
            stem = stem[:dot]
        name, plus, version = stem.rpartition("+")
        if not plus:
            raise PatchFileNameError(f"Patch file name has no '+' separator: {filename}")
        if not name:
            raise PatchFileNameError(f"Patch file name has an empty package name: {filename}")
        return cls(name=name, version=version)

    @property
    def display_name(self) -> str:
        return self.name.replace("+", "/")

    def __str__(self) -> str:
        return f"{self.display_name}@{self.version}"


@dataclass(slots=True, frozen=True)
class PatchFile:
    """A canonical patch file from the local catalog."""

    identity: PackageIdentity
    canonical_path: str
    content: bytes = field(repr=False)

    @property
    def filename(self) -> str:
        return basename(self.canonical_path)


def parse_identity(filename: str) -> PackageIdentity | None:
    """Return the identity encoded in ``filename`` or ``None`` if it is not a patch file."""

    try:
        return PackageIdentity.from_filename(filename)
    except PatchFileNameError:
        return None
