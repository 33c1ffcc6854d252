"""Cut command implementation.

Extracts the selected slices into a directory and reports the manifest.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from debslice.core.selection import require_selection
from debslice.db.models import ManifestRecord
from debslice.deb.errors import ExtractError
from debslice.slicer.runner import RunOptions, SlicerError, run
from debslice.utils.formatting import (
    console,
    create_record_table,
    format_record_row,
    print_error,
    print_info,
    print_success,
)
from debslice.utils.paths import PathError

app = typer.Typer(
    help="Cut slices out of Debian packages.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def parse_package_files(values: list[str]) -> dict[str, Path]:
    """Parse ``name=path`` package options.

    Raises:
        typer.BadParameter: If a value has no ``=`` separator.
    """
    packages: dict[str, Path] = {}
    for value in values:
        name, sep, path = value.partition("=")
        if not sep or not name or not path:
            msg = f"expected NAME=PATH, got {value!r}"
            raise typer.BadParameter(msg, param_hint="--package")
        packages[name] = Path(path)
    return packages


@app.callback(invoke_without_command=True)
def cut_slices(
    ctx: typer.Context,
    root: Annotated[
        Path,
        typer.Option(
            "--root",
            "-r",
            help="Directory receiving the extracted content.",
        ),
    ],
    package_files: Annotated[
        list[str],
        typer.Option(
            "--package",
            "-p",
            help="Package file as NAME=PATH. Repeat for each package.",
        ),
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
            help="Slice to cut as PACKAGE_SLICE. Repeat to cut several; default is all.",
        ),
    ] = None,
    manifest_path: Annotated[
        Path | None,
        typer.Option(
            "--manifest",
            "-m",
            help="Write manifest records as JSON lines to this file.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Cut slices into a directory.

    Examples:
        debslice cut -r ./rootfs -p base-files=base-files.deb
        debslice cut -r ./rootfs -p base-files=base-files.deb --slice base-files_bins
        debslice cut -r ./rootfs -p base-files=base-files.deb -m manifest.jsonl
    """
    # Skip if a subcommand is being invoked
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    selection = require_selection(selection_path)
    packages = parse_package_files(package_files)

    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print_error(f"Cannot create root directory {root}: {e}")
        raise typer.Exit(code=1) from e

    lines: list[str] = []

    def write(record: ManifestRecord) -> None:
        lines.append(json.dumps(record.to_dict()))

    try:
        records = run(
            RunOptions(
                selection=selection,
                packages=packages,
                target_dir=root,
                slices=slice_keys or None,
                write=write if manifest_path is not None else None,
            )
        )
    except (SlicerError, ExtractError, PathError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if manifest_path is not None:
        try:
            manifest_path.parent.mkdir(parents=True, exist_ok=True)
            manifest_path.write_text("".join(f"{line}\n" for line in lines))
        except OSError as e:
            print_error(f"Failed to write manifest: {e}")
            raise typer.Exit(code=1) from e
        if not quiet:
            print_info(f"Manifest written to {manifest_path}")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps([record.to_dict() for record in records]))
        return

    if quiet:
        return
    table = create_record_table(title=f"Manifest of {root}")
    for record in records:
        table.add_row(*format_record_row(record))
    console.print(table)
    print_success(f"Cut {len(records)} paths into {root}")
