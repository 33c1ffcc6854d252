"""Selection models for slice definitions.

This module defines the Pydantic models representing the slices.toml
structure: packages, the slices cut from each package, and the paths
each slice selects.

Example:
    [packages.base-files.slices.bins.contents]
    "/usr/bin/hello" = {}
    "/usr/bin/hallo" = { copy = "/usr/bin/hello", mode = 0o755 }
    "/usr/share/doc/**" = {}
"""

from __future__ import annotations

import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from debslice.utils.paths import PathError, clean_path, is_glob

# Package and slice names follow Debian package naming rules
NAME_PATTERN = re.compile(r"^[a-z0-9](?:-?[.a-z0-9+]){1,}$")
SLICE_NAME_PATTERN = re.compile(r"^[a-z](?:-?[a-z0-9]){2,}$")


def _validate_selection_path(path: str) -> str:
    if not path.startswith("/"):
        msg = f"path must be absolute: {path!r}"
        raise ValueError(msg)
    try:
        key = clean_path(path)
    except PathError as e:
        raise ValueError(str(e)) from e
    if key == "":
        msg = "cannot select the root directory"
        raise ValueError(msg)
    return path


class PathOptions(BaseModel):
    """Options attached to a selected path.

    At most one of ``copy``, ``text``, ``symlink`` and ``make`` may be set.
    Without any of them the path is extracted from the package as is.

    Attributes:
        copy_from: Package path to extract to this path instead.
        text: Content of a file created after extraction.
        symlink: Target of a symlink created after extraction.
        make: Create the directory even if the package does not ship it.
        mode: Permission bits replacing the packaged or default ones.
        optional: Do not fail when the package lacks the path.
        mutable: The file may be changed by the mutation step.
        until: Remove the path once the given step has run.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    copy_from: Annotated[
        str | None,
        Field(alias="copy", description="Package path to copy from"),
    ] = None
    text: Annotated[str | None, Field(description="Content of a generated file")] = None
    symlink: Annotated[str | None, Field(description="Target of a generated symlink")] = None
    make: Annotated[bool, Field(description="Create the directory")] = False
    mode: Annotated[
        int | None,
        Field(ge=0, le=0o7777, description="Permission bits override"),
    ] = None
    optional: Annotated[bool, Field(description="Path may be missing from the package")] = False
    mutable: Annotated[bool, Field(description="Content may change after extraction")] = False
    until: Annotated[
        Literal["mutate"] | None,
        Field(description="Remove the path after this step"),
    ] = None

    @field_validator("copy_from")
    @classmethod
    def validate_copy(cls, v: str | None) -> str | None:
        """Validate that the copy source is a plain absolute path."""
        if v is None:
            return v
        if is_glob(v):
            msg = f"copy source cannot be a glob: {v}"
            raise ValueError(msg)
        return _validate_selection_path(v)

    @model_validator(mode="after")
    def validate_kind(self) -> PathOptions:
        """Validate that the path has a single origin."""
        kinds = [
            name
            for name, value in (
                ("copy", self.copy_from),
                ("text", self.text),
                ("symlink", self.symlink),
                ("make", self.make or None),
            )
            if value is not None
        ]
        if len(kinds) > 1:
            msg = f"path options are exclusive: {', '.join(kinds)}"
            raise ValueError(msg)
        if self.symlink is not None and self.mode is not None:
            msg = "symlinks cannot have a mode"
            raise ValueError(msg)
        return self

    @property
    def generated(self) -> bool:
        """True if the path is created by debslice rather than extracted."""
        return self.text is not None or self.symlink is not None or self.make


class SliceDefinition(BaseModel):
    """A named bundle of paths cut from one package.

    Attributes:
        contents: Selected paths with their options.
    """

    model_config = ConfigDict(extra="forbid")

    contents: Annotated[
        dict[str, PathOptions],
        Field(default_factory=dict, description="Selected paths"),
    ]

    @model_validator(mode="after")
    def validate_contents(self) -> SliceDefinition:
        """Validate selected paths and the options allowed on globs."""
        for path, options in self.contents.items():
            _validate_selection_path(path)
            if options.make and not path.endswith("/"):
                msg = f"make requires a directory path ending in '/': {path}"
                raise ValueError(msg)
            if not is_glob(path):
                continue
            if options.copy_from is not None or options.mode is not None or options.generated:
                msg = f"glob path cannot have copy, mode, text, symlink or make: {path}"
                raise ValueError(msg)
        return self


class PackageSelection(BaseModel):
    """Slices defined for one package.

    Attributes:
        slices: Slice definitions keyed by slice name.
    """

    model_config = ConfigDict(extra="forbid")

    slices: Annotated[
        dict[str, SliceDefinition],
        Field(default_factory=dict, description="Slices keyed by name"),
    ]

    @field_validator("slices")
    @classmethod
    def validate_slice_names(cls, v: dict[str, SliceDefinition]) -> dict[str, SliceDefinition]:
        """Validate slice names."""
        for name in v:
            if not SLICE_NAME_PATTERN.match(name):
                msg = f"invalid slice name: {name!r}"
                raise ValueError(msg)
        return v


class SelectionFile(BaseModel):
    """Complete selection file.

    Attributes:
        packages: Package selections keyed by package name.
    """

    model_config = ConfigDict(extra="forbid")

    packages: Annotated[
        dict[str, PackageSelection],
        Field(default_factory=dict, description="Packages keyed by name"),
    ]

    @field_validator("packages")
    @classmethod
    def validate_package_names(
        cls, v: dict[str, PackageSelection]
    ) -> dict[str, PackageSelection]:
        """Validate package names."""
        for name in v:
            if not NAME_PATTERN.match(name):
                msg = f"invalid package name: {name!r}"
                raise ValueError(msg)
        return v

    def slice_keys(self) -> list[str]:
        """Return every slice key (``package_slice``) in sorted order."""
        return sorted(
            f"{package}_{name}"
            for package, selection in self.packages.items()
            for name in selection.slices
        )
