"""CLI entry point for docrebuild.

Every decision command resolves to a verdict; step outputs are written to
``GITHUB_OUTPUT`` when it is set.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from docrebuild.ci_outputs import verdict_outputs, write_outputs
from docrebuild.config import DocRebuildConfig, find_config, load_config
from docrebuild.engine import Engine, create_engine
from docrebuild.exceptions import CacheStoreError, ConfigurationError
from docrebuild.logging import LOG_DIR_ENV, setup_logging
from docrebuild.policy import RebuildVerdict

EVENT_PATH_ENV = "GITHUB_EVENT_PATH"

config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to docrebuild.yaml (auto-detected if not specified)",
)
verbose_option = click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)


def _setup_logging(verbose: bool, log_file: bool = False) -> None:
    setup_logging(
        level="DEBUG" if verbose else None,
        console=True,
        file=log_file or bool(os.environ.get(LOG_DIR_ENV)),
    )


def _load(config_path: Path | None) -> DocRebuildConfig:
    if config_path is None:
        config_path = find_config()
    return load_config(config_path)


def _open_engine(config_path: Path | None) -> Engine:
    return create_engine(_load(config_path))


def _echo_verdict(verdict: RebuildVerdict) -> None:
    click.echo(f"Force rebuild: {str(verdict.force_rebuild).lower()}")
    click.echo(f"Changed repositories: {len(verdict.changed_sources)}")
    for url in verdict.changed_sources:
        click.echo(f"  - {url}")
    click.echo(f"Has changes: {str(verdict.has_changes).lower()}")
    if verdict.reason:
        click.echo(f"Reason: {verdict.reason}")


@click.group()
@click.version_option(package_name="docrebuild")
def main() -> None:
    """docrebuild - decide when a documentation site needs rebuilding."""


@main.command()
@config_option
@verbose_option
def check(config_path: Path | None, verbose: bool) -> None:
    """Poll every tracked repository and decide whether to rebuild.

    Compares the site's own repository and every tracked source with the
    cache, updates the cache and writes force-rebuild, changed-repos and
    has-changes step outputs. Exits 2 on configuration errors after writing
    fail-safe outputs.
    """
    _setup_logging(verbose)

    try:
        engine = _open_engine(config_path)
        engine.validate_sources()
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        write_outputs(verdict_outputs(RebuildVerdict.fail_safe(str(e), "configuration error")))
        sys.exit(2)

    try:
        verdict = engine.policy.decide_cycle()
    finally:
        engine.close()

    write_outputs(verdict_outputs(verdict))
    _echo_verdict(verdict)


@main.command("should-rebuild")
@config_option
@verbose_option
@click.option(
    "--exit-code",
    is_flag=True,
    help="Exit with status 1 when no rebuild is needed",
)
def should_rebuild(config_path: Path | None, verbose: bool, exit_code: bool) -> None:
    """Decide from the cache whether to rebuild (consumes stale flags).

    Prints "true" or "false".
    """
    _setup_logging(verbose)

    try:
        engine = _open_engine(config_path)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        verdict = RebuildVerdict.fail_safe(str(e), "configuration error")
    else:
        try:
            verdict = engine.policy.should_rebuild()
        finally:
            engine.close()

    write_outputs(verdict_outputs(verdict))
    click.echo(str(verdict.has_changes).lower())
    if exit_code and not verdict.has_changes:
        sys.exit(1)


@main.command()
@click.argument("payload", required=False, type=click.Path(allow_dash=True, path_type=Path))
@config_option
@verbose_option
def webhook(payload: Path | None, config_path: Path | None, verbose: bool) -> None:
    """Process a push event payload.

    PAYLOAD is a JSON file, "-" for stdin, or defaults to GITHUB_EVENT_PATH.
    Prints the outcome: not_tracked, no_rebuild_needed or rebuild_requested.
    """
    _setup_logging(verbose)

    if payload is None:
        event_path = os.environ.get(EVENT_PATH_ENV)
        if not event_path:
            click.echo(f"No payload given and {EVENT_PATH_ENV} is not set", err=True)
            sys.exit(2)
        payload = Path(event_path)

    try:
        if str(payload) == "-":
            data = json.load(sys.stdin)
        else:
            with open(payload, encoding="utf-8") as f:
                data = json.load(f)
    except (OSError, ValueError) as e:
        click.echo(f"Could not read payload: {e}", err=True)
        sys.exit(2)

    try:
        engine = _open_engine(config_path)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    try:
        result = engine.processor.process_payload(data)
    finally:
        engine.close()

    write_outputs({"rebuild": str(result.rebuild).lower()})
    click.echo(result.outcome.value)
    for path in result.content_paths:
        click.echo(f"  - {path}")


@main.command("record-build")
@config_option
@verbose_option
def record_build(config_path: Path | None, verbose: bool) -> None:
    """Record that a rebuild just ran."""
    _setup_logging(verbose)

    try:
        engine = _open_engine(config_path)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    try:
        recorded = engine.policy.record_build()
    finally:
        engine.close()

    if not recorded:
        click.echo("Failed to record build time", err=True)
        sys.exit(1)
    click.echo("Build time recorded")


@main.command("cache-info")
@config_option
@verbose_option
def cache_info(config_path: Path | None, verbose: bool) -> None:
    """Show what the cache currently holds."""
    _setup_logging(verbose)

    try:
        engine = _open_engine(config_path)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    try:
        info = engine.store.info()
    finally:
        engine.close()

    click.echo(f"Cache file: {info.path}")
    if not info.exists:
        click.echo("  (not created yet)")
        return
    if info.corrupt:
        click.echo("  (corrupt, will be discarded)")
    last_build = info.last_build_time.isoformat() if info.last_build_time else "never"
    click.echo(f"Last build: {last_build}")
    click.echo(f"Repositories: {len(info.sources)}")
    for url in info.sources:
        marker = " [stale]" if url in info.stale_sources else ""
        click.echo(f"  - {url}{marker}")


@main.command("clear-cache")
@config_option
@verbose_option
def clear_cache(config_path: Path | None, verbose: bool) -> None:
    """Delete the cache file; the next decision rebuilds everything."""
    _setup_logging(verbose)

    try:
        engine = _open_engine(config_path)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    try:
        removed = engine.store.clear()
    except CacheStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        engine.close()

    click.echo(f"Removed {engine.store.path}" if removed else "Cache already empty")


@main.command()
@config_option
@verbose_option
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(config_path: Path | None, verbose: bool, host: str, port: int) -> None:
    """Run the webhook receiver."""
    import uvicorn  # noqa: PLC0415

    from docrebuild.api import create_app  # noqa: PLC0415

    _setup_logging(verbose, log_file=True)

    try:
        if config_path is None:
            config_path = find_config()
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    uvicorn.run(create_app(config_path=config_path), host=host, port=port)


if __name__ == "__main__":
    main()
