"""MPQ Reader CLI."""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from . import __version__


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log archive parsing details")
def main(verbose: bool):
    """MPQ Reader - Inspect and extract Blizzard MPQ archives.

    \b
    Supports:
    - Plain MPQ archives
    - Warcraft III maps and campaigns (HM3W prefix)
    - StarCraft II maps (user data block)
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@main.command()
@click.argument("archive", type=click.Path(exists=True, path_type=Path))
def info(archive: Path):
    """Show the archive header and map metadata."""
    from .mpq import MPQArchive

    try:
        with MPQArchive(archive) as mpq:
            click.echo(f"Archive:      {archive}")
            click.echo(f"Type:         {mpq.archive_type.name}")
            click.echo(f"Header at:    0x{mpq.header_offset:08X}")
            click.echo(f"Header size:  {mpq.header_size}")
            click.echo(f"Archive size: {mpq.archive_size}")
            click.echo(f"Version:      {mpq.format_version}")
            click.echo(f"Sector size:  {mpq.sector_size}")
            click.echo(f"Hash table:   {mpq.header.hash_table_size} entries")
            click.echo(f"Block table:  {mpq.header.block_table_size} entries")

            game_data = mpq.game_data
            if game_data is not None:
                click.echo()
                for field, value in vars(game_data).items():
                    if isinstance(value, bytes):
                        value = value.decode("utf-8", errors="replace")
                    click.echo(f"{field}: {value}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command(name="list")
@click.argument("archive", type=click.Path(exists=True, path_type=Path))
def list_files(archive: Path):
    """List files named by the archive's (listfile)."""
    from .mpq import MPQArchive

    try:
        with MPQArchive(archive) as mpq:
            names = mpq.list_files()
            if not names:
                click.echo("No (listfile) found.")
                return

            click.echo(f"Files in archive ({len(names)}):")
            for name in names:
                click.echo(f"  {name}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("archive", type=click.Path(exists=True, path_type=Path))
@click.argument("name")
def has(archive: Path, name: str):
    """Exit with status 0 if NAME is in the archive, 1 otherwise."""
    from .mpq import MPQArchive

    try:
        with MPQArchive(archive) as mpq:
            found = mpq.has_file(name)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"{name}: {'found' if found else 'not found'}")
    sys.exit(0 if found else 1)


@main.command()
@click.argument("archive", type=click.Path(exists=True, path_type=Path))
@click.argument("names", nargs=-1)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output directory (default: <archive_name>_extracted)",
)
def extract(archive: Path, names: Tuple[str, ...], output: Optional[Path]):
    """Extract files from an MPQ archive.

    NAMES are archive paths such as "war3map.j" or "Scripts\\war3map.j".
    Without NAMES every file in the (listfile) is extracted.
    """
    from .mpq import MPQArchive

    click.echo(f"Opening: {archive}")

    if output is None:
        output = archive.parent / f"{archive.stem}_extracted"

    try:
        with MPQArchive(archive) as mpq:
            wanted = list(names) or mpq.list_files()
            if not wanted:
                click.echo("Nothing to extract: no names given and no (listfile) found.")
                return

            click.echo(f"Output:  {output}")
            click.echo()

            extracted_count = 0
            failed = []
            for name in wanted:
                try:
                    for _, path in mpq.extract_all(output, [name]):
                        click.echo(f"Extracted: {name} -> {path}")
                        extracted_count += 1
                except Exception as e:
                    failed.append(name)
                    click.echo(f"  Warning: {e}", err=True)

            click.echo()
            click.echo(f"Extracted: {extracted_count} files")
            if failed:
                click.echo(f"Failed:    {len(failed)} files")
                sys.exit(1)

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
