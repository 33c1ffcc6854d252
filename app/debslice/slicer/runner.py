"""Slice-driven cuts.

A cut turns a selection into a filesystem. The slices chosen from each
package are merged into one path tree per package; the tree yields the
target specification handed to the extractor, while the recorder observes
extraction and produces the manifest records of the result.
"""

import io
import logging
import stat
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from debslice.db.models import PathRecord, WriteRecord, add_sorted
from debslice.deb.extract import ExtractInfo, ExtractOptions, extract
from debslice.filesystem.create import CreateOptions, create
from debslice.models.selection import PackageSelection, PathOptions, SelectionFile
from debslice.selection.tree import PathNode, PathTree
from debslice.slicer.recorder import PathRecorder

logger = logging.getLogger(__name__)

# Called with the target directory and the mutable paths once content is in place.
MutateHook = Callable[[Path, list[str]], None]


class SlicerError(Exception):
    """Raised when a selection cannot be cut."""


@dataclass(slots=True)
class SelectedPath:
    """Value attached to every node of a selection tree.

    Attributes:
        slices: Slice keys selecting the path itself.
        implicit_slices: Slice keys selecting something below the path.
        options: Path options shared by every selecting slice.
    """

    slices: list[str] = field(default_factory=list)
    implicit_slices: list[str] = field(default_factory=list)
    options: PathOptions | None = None


@dataclass(frozen=True, slots=True)
class _Claim:
    slice_key: str
    options: PathOptions


SelectionTree = PathTree[SelectedPath, _Claim]


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Options for a cut.

    Attributes:
        selection: Parsed selection file.
        packages: Location of the ``.deb`` file of each package.
        target_dir: Existing directory receiving the content.
        slices: Slice keys (``package_slice``) to cut; None cuts every slice.
        write: Sink receiving the manifest records.
        mutate: Hook run after extraction with the mutable paths.
    """

    selection: SelectionFile
    packages: dict[str, Path]
    target_dir: Path
    slices: list[str] | None = None
    write: WriteRecord | None = None
    mutate: MutateHook | None = None


@dataclass(slots=True)
class _Plan:
    extract: dict[str, list[ExtractInfo]] = field(default_factory=dict)
    generated: list[tuple[str, PathOptions]] = field(default_factory=list)
    globs: list[str] = field(default_factory=list)
    mutable: list[str] = field(default_factory=list)
    until: list[str] = field(default_factory=list)
    globbed: dict[str, list[str]] = field(default_factory=dict)

    def expand(self, paths: list[str]) -> list[str]:
        """Replace glob paths with the package paths they matched."""
        expanded: list[str] = []
        for path in paths:
            expanded.extend(self.globbed.get(path, []) if path in self.globs else [path])
        return expanded


def _init_value(node: PathNode[SelectedPath]) -> None:
    node.value = SelectedPath()


def _update(node: PathNode[SelectedPath], claim: _Claim | None) -> None:
    if claim is None or node.value is None:
        return
    value = node.value
    if value.options is not None and value.options != claim.options:
        msg = f"slices {value.slices[0]} and {claim.slice_key} conflict on {node.path}"
        raise SlicerError(msg)
    value.options = claim.options
    add_sorted(value.slices, claim.slice_key)


def _update_implicit(node: PathNode[SelectedPath], claim: _Claim | None) -> None:
    if claim is not None and node.value is not None:
        add_sorted(node.value.implicit_slices, claim.slice_key)


def new_selection_tree() -> SelectionTree:
    """Create an empty tree accumulating slice claims."""
    return PathTree(init_value=_init_value, update=_update, update_implicit=_update_implicit)


def select_slices(selection: SelectionFile, keys: list[str] | None = None) -> dict[str, list[str]]:
    """Resolve slice keys into slice names grouped by package.

    Args:
        selection: Parsed selection file.
        keys: Slice keys (``package_slice``). If None, selects every slice.

    Returns:
        Sorted slice names keyed by package name.

    Raises:
        SlicerError: If a key is malformed or names an unknown slice.
    """
    if keys is None:
        keys = selection.slice_keys()
    selected: dict[str, list[str]] = {}
    for key in keys:
        package, sep, name = key.partition("_")
        if not sep or not package or not name:
            msg = f"invalid slice key {key!r}: expected package_slice"
            raise SlicerError(msg)
        package_selection = selection.packages.get(package)
        if package_selection is None or name not in package_selection.slices:
            msg = f"slice {key} not found"
            raise SlicerError(msg)
        add_sorted(selected.setdefault(package, []), name)
    return selected


def build_tree(package: str, selection: PackageSelection, names: list[str]) -> SelectionTree:
    """Merge the paths of some slices of a package into one tree.

    Raises:
        SlicerError: If two slices select a path with different options.
        PathError: If a selected path is invalid.
    """
    tree = new_selection_tree()
    for name in names:
        claim_key = f"{package}_{name}"
        for path, options in selection.slices[name].contents.items():
            tree.insert(path, _Claim(slice_key=claim_key, options=options))
    return tree


def _plan_tree(tree: SelectionTree, recorder: PathRecorder) -> _Plan:
    plan = _Plan()
    for node in tree.iter_nodes():
        value = node.value
        if node is tree.root or value is None:
            continue

        options = value.options
        if options is None:
            # Directory only required by deeper paths
            plan.extract.setdefault(node.path, []).append(ExtractInfo(path=node.path, optional=True))
            continue

        if node.is_glob:
            for slice_key in value.slices:
                recorder.add_slice_glob(slice_key, node.path)
            plan.extract[node.path] = [ExtractInfo(path=node.path, optional=options.optional)]
            plan.globs.append(node.path)
        else:
            for slice_key in value.slices:
                recorder.add_slice_path(slice_key, node.path)
            if options.generated:
                plan.generated.append((node.path, options))
            else:
                source = options.copy_from or node.path
                info = ExtractInfo(path=node.path, mode=options.mode or 0, optional=options.optional)
                plan.extract.setdefault(source, []).append(info)

        if options.mutable:
            plan.mutable.append(node.path)
        if options.until is not None:
            plan.until.append(node.path)
    return plan


def _create_generated(root: Path, path: str, options: PathOptions, recorder: PathRecorder) -> None:
    data: bytes | None = None
    link = ""
    if options.symlink is not None:
        mode = stat.S_IFLNK | 0o777
        link = options.symlink
    elif options.make:
        mode = stat.S_IFDIR | (0o755 if options.mode is None else options.mode)
    else:
        data = (options.text or "").encode()
        mode = stat.S_IFREG | (0o644 if options.mode is None else options.mode)

    logger.debug("Creating %s", path)
    create(
        CreateOptions(
            path=root / path.lstrip("/"),
            mode=mode,
            data=io.BytesIO(data) if data is not None else None,
            link=link,
        )
    )
    recorder.add_target(path, link, mode, data)


def _remove_paths(root: Path, paths: list[str], recorder: PathRecorder) -> None:
    """Remove paths deepest first, keeping directories that are not empty."""
    for path in sorted(set(paths), reverse=True):
        host = root / path.lstrip("/")
        if path.endswith("/"):
            if not host.is_dir() or any(host.iterdir()):
                continue
            host.rmdir()
        else:
            host.unlink(missing_ok=True)
        logger.debug("Removed %s", path)
        recorder.remove_target(path)


def run(options: RunOptions) -> list[PathRecord]:
    """Cut the selected slices into the target directory.

    Args:
        options: Run options.

    Returns:
        Finalized path records, sorted by path.

    Raises:
        SlicerError: If the selection is inconsistent or a package is missing.
        ExtractError: If a package cannot be extracted.
        OSError: If generated content cannot be written.
    """
    selected = select_slices(options.selection, options.slices)
    recorder = PathRecorder()
    plans: dict[str, _Plan] = {}

    for package, names in sorted(selected.items()):
        if package not in options.packages:
            msg = f"no package file for {package}"
            raise SlicerError(msg)
        tree = build_tree(package, options.selection.packages[package], names)
        plans[package] = _plan_tree(tree, recorder)

    logger.info(
        "Cutting %d slices from %d packages into %s",
        sum(len(names) for names in selected.values()),
        len(selected),
        options.target_dir,
    )

    for package, plan in plans.items():
        if plan.extract:
            with open(options.packages[package], "rb") as f:
                extract(
                    f,
                    ExtractOptions(
                        package=package,
                        target_dir=options.target_dir,
                        extract=plan.extract,
                        globbed=plan.globbed,
                        on_data=recorder.on_data,
                        on_create=recorder.on_create,
                    ),
                )
        for path, path_options in plan.generated:
            _create_generated(options.target_dir, path, path_options, recorder)

    mutable = sorted({path for plan in plans.values() for path in plan.expand(plan.mutable)})
    if options.mutate is not None:
        options.mutate(options.target_dir, mutable)
    for path in mutable:
        recorder.mark_mutated(path)

    removable = [path for plan in plans.values() for path in plan.expand(plan.until)]
    _remove_paths(options.target_dir, removable, recorder)

    recorder.update_targets(options.target_dir)
    if options.write is not None:
        recorder.update_db(options.write)
    return recorder.records()
