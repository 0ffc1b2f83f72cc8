"""
CLI interface for a local Zotero library.

Usage:
    store-zotero                      # list item keys
    store-zotero -v -f "attention"    # verbose list, title filter
    store-zotero -t ml                # items tagged *ml*
    store-zotero open ABCD1234        # open the first attachment
    store-zotero reference ABCD1234   # print a markdown reference link
"""

import json
import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from . import __version__
from .config import Config, default_config_path, resolve_config, save_config
from .errors import AttachmentNotFoundError, OpenError, StoreZoteroError
from .logging_config import configure_quiet_mode, enable_debug_mode
from .repository import Repository
from .types import (
    TAGS_WIDTH,
    TITLE_WIDTH,
    Item,
    first_storage_path,
    storage_path_for,
    truncate,
)

logger = logging.getLogger(__name__)


# Set STORE_ZOTERO_DEBUG=1 to enable debug logging via environment
if os.environ.get("STORE_ZOTERO_DEBUG") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        print(f"store-zotero {__version__}")
        raise typer.Exit()


def _debug_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_config_override: Optional[Path] = None
_db_override: Optional[Path] = None
_storage_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _config_callback(value: Optional[Path]):
    global _config_override
    _config_override = value


def _db_callback(value: Optional[Path]):
    global _db_override
    _db_override = value


def _storage_callback(value: Optional[Path]):
    global _storage_override
    _storage_override = value


app = typer.Typer(
    name="store-zotero",
    help="List, open and cite items from a local Zotero library.",
    no_args_is_help=False,
    invoke_without_command=True,
    rich_markup_mode=None,
)


def _fail(context: str, exc: Exception) -> typer.Exit:
    """Report a handled error on stderr; caller raises the returned Exit."""
    typer.echo(f"Error {context}: {exc}", err=True)
    return typer.Exit(1)


def _get_config(allow_missing: bool = False) -> Config:
    try:
        return resolve_config(
            config_path=_config_override,
            db_path=_db_override,
            storage_path=_storage_override,
            allow_missing=allow_missing,
        )
    except StoreZoteroError as e:
        raise _fail("loading config", e)


def _get_repository(config: Config) -> Repository:
    """Open the database, closing it again at interpreter exit."""
    import atexit

    try:
        repo = Repository(config.db_path)
    except StoreZoteroError as e:
        raise _fail("opening database", e)
    atexit.register(repo.close)
    return repo


# -----------------------------------------------------------------------------
# Output Formatting
#
#   default:  stable id only, one per line
#   -v:       one tab-separated line per attachment
#             (id, title, tags, resolved path)
#   --json:   array of item objects with resolved attachment paths
# -----------------------------------------------------------------------------

def format_item(item: Item, storage_root: Path, verbose: bool = False) -> list[str]:
    """Render one item as output lines."""
    if not verbose:
        return [item.stable_id]

    title = truncate(item.title, TITLE_WIDTH)
    tags = truncate(item.tags, TAGS_WIDTH) if item.tags else ""
    prefix = f"{item.stable_id:<8}\t{title:<{TITLE_WIDTH}}\t{tags:<{TAGS_WIDTH}}\t"

    if not item.attachments:
        return [prefix]
    # Pairs without a colon print nothing
    return [
        f"{prefix}{storage_path_for(storage_root, att)}"
        for att in item.attachment_list()
    ]


def item_to_dict(item: Item, storage_root: Path) -> dict:
    return {
        "stable_id": item.stable_id,
        "title": item.title,
        "tags": item.tag_list(),
        "attachments": [
            {"key": att.key, "path": str(storage_path_for(storage_root, att))}
            for att in item.attachment_list()
        ],
    }


def format_reference(item: Item, path: Path, version: str) -> str:
    """Markdown link citing the item and pointing at its attachment."""
    tags = "{" + (item.tags or "") + "}"
    return (
        f"[zotero: {item.title}, stableid: {item.stable_id}, "
        f"tags: {tags}, version: {version}]({path})"
    )


def _attachment_path(repo: Repository, config: Config, stable_id: str) -> tuple[Item, Path]:
    """Fetch an item and resolve its first attachment path."""
    item = repo.get_by_stable_id(stable_id)
    path = first_storage_path(config.storage_path, item)
    if path is None:
        raise AttachmentNotFoundError(stable_id)
    return item, path


def _opener_command(opener: Optional[str], path: Path) -> Optional[list[str]]:
    """Command line that opens *path*, or None to use os.startfile."""
    if opener:
        return shlex.split(opener) + [str(path)]
    if sys.platform == "darwin":
        return ["open", str(path)]
    if sys.platform == "win32":
        return None
    return ["xdg-open", str(path)]


def open_path(path: Path, opener: Optional[str] = None) -> None:
    """Hand *path* to the OS opener.

    Raises:
        OpenError: If the opener can't be started or exits non-zero
    """
    cmd = _opener_command(opener, path)
    logger.debug("Opening %s with %s", path, cmd or "os.startfile")
    try:
        if cmd is None:
            os.startfile(str(path))  # type: ignore[attr-defined]
        else:
            subprocess.run(cmd, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        raise OpenError(f"opening file: {e}") from e


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    find: Annotated[str, typer.Option(
        "--find", "-f",
        help="Find items by title (case-insensitive substring)",
    )] = "",
    tag: Annotated[str, typer.Option(
        "--tag", "-t",
        help="Find items by tag (case-insensitive substring)",
    )] = "",
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Verbose output: title, tags and attachment paths",
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    db: Annotated[Optional[Path], typer.Option(
        "--db",
        help="Path to zotero.sqlite (env: STORE_ZOTERO_DB)",
        callback=_db_callback,
        is_eager=True,
    )] = None,
    storage: Annotated[Optional[Path], typer.Option(
        "--storage",
        help="Zotero storage directory (env: STORE_ZOTERO_STORAGE)",
        callback=_storage_callback,
        is_eager=True,
    )] = None,
    config_file: Annotated[Optional[Path], typer.Option(
        "--config",
        help="Config file (env: STORE_ZOTERO_CONFIG)",
        callback=_config_callback,
        is_eager=True,
    )] = None,
    debug: Annotated[bool, typer.Option(
        "--debug",
        help="Enable debug-level logging to stderr",
        callback=_debug_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
):
    """
    List items in the Zotero library.

    \b
    Examples:
        store-zotero                  # All item keys
        store-zotero -v               # Keys, titles, tags and file paths
        store-zotero -f neural -t ml  # Title contains 'neural' AND a tag contains 'ml'
    """
    if ctx.invoked_subcommand is not None:
        return

    config = _get_config()
    repo = _get_repository(config)
    try:
        items = repo.list_items(find, tag)
    except StoreZoteroError as e:
        raise _fail("listing items", e)

    if _json_output:
        typer.echo(json.dumps(
            [item_to_dict(item, config.storage_path) for item in items],
            indent=2,
        ))
        return
    for item in items:
        for line in format_item(item, config.storage_path, verbose):
            typer.echo(line)


@app.command("open")
def open_item(
    stable_id: Annotated[str, typer.Argument(help="Zotero item key")],
):
    """Open the item's first attachment with the system viewer."""
    config = _get_config()
    repo = _get_repository(config)
    try:
        _, path = _attachment_path(repo, config, stable_id)
        open_path(path, config.opener)
    except StoreZoteroError as e:
        raise _fail("opening item", e)


@app.command()
def reference(
    stable_id: Annotated[str, typer.Argument(help="Zotero item key")],
):
    """Print a markdown reference link to the item's first attachment."""
    config = _get_config()
    repo = _get_repository(config)
    try:
        item, path = _attachment_path(repo, config, stable_id)
    except StoreZoteroError as e:
        raise _fail("generating reference", e)

    if _json_output:
        data = item_to_dict(item, config.storage_path)
        data["path"] = str(path)
        data["version"] = config.version
        typer.echo(json.dumps(data, indent=2))
        return
    typer.echo(format_reference(item, path, config.version))


@app.command("config")
def show_config(
    init: Annotated[bool, typer.Option(
        "--init",
        help="Write the resolved settings to the config file",
    )] = False,
    force: Annotated[bool, typer.Option(
        "--force",
        help="With --init, overwrite an existing config file",
    )] = False,
):
    """Show the resolved configuration, or write it with --init."""
    config = _get_config(allow_missing=init)
    path = _config_override if _config_override is not None else default_config_path()

    if init:
        if path.exists() and not force:
            typer.echo(f"Error: {path} already exists (use --force to overwrite)", err=True)
            raise typer.Exit(1)
        save_config(config, path)
        typer.echo(f"Wrote {path}")
        return

    values = {
        "config_file": str(path),
        "db_path": str(config.db_path),
        "storage_path": str(config.storage_path),
        "version": config.version,
        "opener": config.opener or "",
    }
    if _json_output:
        typer.echo(json.dumps(values, indent=2))
        return
    for key, value in values.items():
        typer.echo(f"{key}: {value}")


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="store-zotero CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
