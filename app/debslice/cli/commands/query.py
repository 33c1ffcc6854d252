"""Query command implementation.

Reports which slices select a path, without extracting anything.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from debslice.core.selection import require_selection
from debslice.slicer.runner import SlicerError, build_tree, select_slices
from debslice.utils.formatting import console, print_error, print_warning
from debslice.utils.paths import PathError


def query_paths(
    paths: Annotated[
        list[str],
        typer.Argument(help="Absolute paths to look up; directories end with '/'."),
    ],
    selection_path: Annotated[
        Path | None,
        typer.Option(
            "--selection",
            "-s",
            help="Selection file (default: ~/.config/debslice/slices.toml).",
        ),
    ] = None,
    slice_keys: Annotated[
        list[str] | None,
        typer.Option(
            "--slice",
            help="Restrict the lookup to PACKAGE_SLICE. Repeatable.",
        ),
    ] = None,
) -> None:
    """Look up paths in the selection.

    A path is selected when a slice names it, names a directory below it,
    or has a glob matching it.

    Examples:
        debslice query /usr/bin/hello
        debslice query /usr/ /etc/passwd --slice base-files_bins
    """
    selection = require_selection(selection_path)
    try:
        selected = select_slices(selection, slice_keys or None)
        trees = {
            package: build_tree(package, selection.packages[package], names)
            for package, names in sorted(selected.items())
        }
    except (SlicerError, PathError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    table = Table(show_header=True, header_style="bold_header", border_style="border")
    table.add_column("Path", no_wrap=True)
    table.add_column("Match", style="muted")
    table.add_column("Kind", style="muted")
    table.add_column("Slices", style="text")

    unmatched = 0
    for path in paths:
        found = False
        for tree in trees.values():
            node = tree.find(path)
            if node is None or node.value is None:
                continue
            found = True
            slices = node.value.slices or node.value.implicit_slices
            kind = f"{node.kind.value} (implicit)" if node.implicit else node.kind.value
            table.add_row(path, node.path, kind, ", ".join(slices))
        if not found:
            unmatched += 1
            table.add_row(path, "-", "-", "[warning]not selected[/]")

    console.print(table)
    if unmatched:
        print_warning(f"{unmatched} of {len(paths)} paths are not selected")
        raise typer.Exit(code=1)
