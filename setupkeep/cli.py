"""
CLI for inspecting and maintaining a setupkeep store.

Usage:
    setupkeep list
    setupkeep check
    setupkeep migrate
    setupkeep import-legacy setups.json
"""

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .backend import create_store
from .codec import decode_setup_list
from .config import get_default_store_path, load_or_create_config
from .config_store import whole_key
from .logging_config import configure_ops_log, enable_debug_mode
from .manager import PersistentDataManager

if os.environ.get("SETUPKEEP_VERBOSE") == "1":
    enable_debug_mode()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_store_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _store_callback(value: Optional[Path]):
    global _store_override
    if value is not None:
        _store_override = value


app = typer.Typer(
    name="setupkeep",
    help="Inspect and maintain stored inventory setups.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    store: Annotated[Optional[Path], typer.Option(
        "--store", "-s",
        envvar="SETUPKEEP_STORE_PATH",
        help="Path to the store directory (default: ~/.setupkeep/)",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Inspect and maintain stored inventory setups."""


@contextmanager
def _opened():
    """Open config, store and manager for the selected store directory.

    The ops log handler and the store are released on exit.
    """
    store_path = _store_override or get_default_store_path()
    config = load_or_create_config(store_path)
    handler = configure_ops_log(store_path)
    store = None
    try:
        store = create_store(config)
        yield config, store, PersistentDataManager.from_config(store, config)
    finally:
        logging.getLogger("setupkeep").removeHandler(handler)
        handler.close()
        if store is not None and hasattr(store, "close"):
            store.close()


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


@app.command("list")
def list_setups():
    """Load setups (running pending migrations) and print them in order."""
    with _opened() as (_config, _store, manager):
        loaded = manager.load()
        cache = manager.cache

    if _json_output:
        _echo_json({
            "setups": [
                {"name": s.name, "sections": cache.sections_for(s.name)}
                for s in loaded.setups
            ],
            "sections": [
                {"name": sec.name, "setups": sec.setups} for sec in loaded.sections
            ],
        })
        return

    for setup in loaded.setups:
        sections = cache.sections_for(setup.name)
        suffix = f"  [{', '.join(sections)}]" if sections else ""
        typer.echo(f"{setup.name}{suffix}")
    if not loaded.setups:
        typer.echo("No setups stored.", err=True)


@app.command()
def migrate():
    """Run pending migrations only."""
    with _opened() as (_config, _store, manager):
        result = manager.migrations.run()

    if _json_output:
        _echo_json({
            "migrated": result.migrated,
            "removed_keys": result.removed_keys,
            "setups": result.setup_count,
        })
        return

    if not result.changed:
        typer.echo("Store is up to date.")
        return
    for stage in result.migrated:
        typer.echo(f"Migrated {stage}")
    for key in result.removed_keys:
        typer.echo(f"Removed {key}")
    typer.echo(f"{result.setup_count} setups written")


@app.command()
def keys():
    """List raw logical keys in the config group."""
    with _opened() as (config, store, _manager):
        prefix = whole_key(config.group)
        names = [k[len(prefix):] for k in store.list_keys(prefix)]

    if _json_output:
        _echo_json(names)
        return
    for name in names:
        typer.echo(name)


@app.command()
def check():
    """Report drift between the setup order and stored setups without repairing it."""
    with _opened() as (_config, _store, manager):
        drift = manager.records.check()

    if _json_output:
        _echo_json({"stale": drift.stale, "orphaned": drift.orphaned})
    elif drift.clean:
        typer.echo("Setup order is consistent.")
    else:
        for h in drift.stale:
            typer.echo(f"stale order entry: {h}")
        for h in drift.orphaned:
            typer.echo(f"setup missing from order: {h}")

    if not drift.clean:
        raise typer.Exit(1)


@app.command()
def resave():
    """Load and save all setups and sections, writing any repairs back."""
    with _opened() as (_config, _store, manager):
        loaded = manager.load()
        manager.save(loaded.setups, loaded.sections)
    typer.echo(f"Saved {len(loaded.setups)} setups, {len(loaded.sections)} sections")


@app.command("import-legacy")
def import_legacy(
    file: Annotated[Path, typer.Argument(help="JSON file holding a V1 setups array")],
    force: Annotated[bool, typer.Option(
        "--force", "-f",
        help="On an already migrated store, replace the current setups with the file's",
    )] = False,
):
    """Import a legacy V1 setups array.

    On a store that was never migrated the array is staged under the V1 key
    and the next load migrates it. Migration markers are never cleared: on a
    migrated store ``--force`` writes the setups directly as current records.
    """
    text = file.read_text(encoding="utf-8")
    setups = decode_setup_list(text, legacy=True)

    with _opened() as (config, store, manager):
        if not store.get(config.group, config.keys.migrated_v2):
            store.set(config.group, config.keys.setups_v1, text)
            typer.echo(f"Staged {len(setups)} legacy setups")
            return
        if not force:
            typer.echo("Store already migrated from V1; use --force to replace current setups.", err=True)
            raise typer.Exit(1)
        manager.save(setups)
    typer.echo(f"Replaced current setups with {len(setups)} legacy setups")


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
        log_path = log_exception(e, context="setupkeep CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
