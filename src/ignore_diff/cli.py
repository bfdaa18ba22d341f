"""Click CLI entry point for ignore-diff."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict

import click

from ignore_diff import __version__
from ignore_diff.config import (
    DEFAULT_DIFF_OUTPUT,
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_NAMESPACE,
    DEFAULT_NORMALIZE_OUTPUT,
    LOG_TEXT_FORMAT,
)
from ignore_diff.diff.engine import ChangeRecord, diff_all
from ignore_diff.exceptions import IgnoreDiffError
from ignore_diff.normalizers.ignore import IgnoreNormalizer
from ignore_diff.parser.manifest import dump_multi_doc, pair_resources, parse_multi_doc
from ignore_diff.parser.settings import IgnoreSettings, load_settings

_LOGGER = logging.getLogger(__name__)

_STATUS_COLORS = {"added": "green", "removed": "red", "changed": "yellow"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, keys sorted."""

    def format(self, record: logging.LogRecord) -> str:
        rec = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            rec["exc"] = self.formatException(record.exc_info)
        return json.dumps(rec, sort_keys=True)


def configure_logging(level: str, log_format: str) -> None:
    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_TEXT_FORMAT))
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)


def _build_normalizer(settings_path: str | None) -> IgnoreNormalizer:
    settings = load_settings(settings_path) if settings_path else IgnoreSettings()
    return IgnoreNormalizer.from_settings(settings)


@click.group()
@click.version_option(__version__)
@click.option(
    "--log-level",
    default=DEFAULT_LOG_LEVEL,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level",
)
@click.option(
    "--log-format",
    default=DEFAULT_LOG_FORMAT,
    type=click.Choice(["text", "json"]),
    help="Log line format",
)
def main(log_level: str, log_format: str) -> None:
    """ignore-diff: strip declared fields from Kubernetes resources before diffing."""
    configure_logging(log_level, log_format)


@main.command()
@click.argument("manifest", type=click.File("r"))
@click.option("-s", "--settings", "settings_path", default=None, help="Ignore settings file")
@click.option(
    "-o", "--output", "output_format",
    type=click.Choice(["yaml", "json"]),
    default=DEFAULT_NORMALIZE_OUTPUT,
    help="Output format",
)
@click.option("-n", "--namespace", default=DEFAULT_NAMESPACE, help="Namespace for resources without one")
def normalize(manifest, settings_path: str | None, output_format: str, namespace: str) -> None:
    """Remove ignored fields from every resource in MANIFEST ('-' for stdin)."""
    try:
        normalizer = _build_normalizer(settings_path)
        resources = parse_multi_doc(manifest.read(), default_namespace=namespace)
        for res in resources:
            removed = normalizer.normalize(res)
            _LOGGER.info("Normalized %s, removed %d fields", res.key, removed)
    except IgnoreDiffError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    if output_format == "json":
        click.echo(json.dumps([res.body for res in resources], indent=2, default=str))
    else:
        click.echo(dump_multi_doc(resources), nl=False)


@main.command()
@click.argument("live", type=click.File("r"))
@click.argument("desired", type=click.File("r"))
@click.option("-s", "--settings", "settings_path", default=None, help="Ignore settings file")
@click.option(
    "-o", "--output", "output_format",
    type=click.Choice(["terminal", "json"]),
    default=DEFAULT_DIFF_OUTPUT,
    help="Output format",
)
@click.option("-n", "--namespace", default=DEFAULT_NAMESPACE, help="Namespace for resources without one")
@click.option("--no-color", is_flag=True, help="Disable colored output")
def diff(
    live,
    desired,
    settings_path: str | None,
    output_format: str,
    namespace: str,
    no_color: bool,
) -> None:
    """Show what still differs between LIVE and DESIRED after ignored fields are removed.

    Exits 0 when nothing differs and 1 otherwise.
    """
    try:
        normalizer = _build_normalizer(settings_path)
        pairs = pair_resources(
            parse_multi_doc(live.read(), default_namespace=namespace),
            parse_multi_doc(desired.read(), default_namespace=namespace),
        )
        records = diff_all(pairs, normalizer)
    except IgnoreDiffError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    if output_format == "json":
        click.echo(json.dumps(
            {
                "changes": [asdict(r) for r in records],
                "unchanged": len(pairs) - len(records),
            },
            indent=2,
            default=str,
        ))
    else:
        _render_terminal(records, color=False if no_color else None)

    sys.exit(1 if records else 0)


def _render_terminal(records: list[ChangeRecord], color: bool | None) -> None:
    if not records:
        click.echo("No differences.")
        return
    for record in records:
        header = f"{record.status.upper()} {record.resource_key}"
        click.secho(header, fg=_STATUS_COLORS[record.status], bold=True, color=color)
        for fc in record.changes:
            if fc.change_type == "item_added":
                click.echo(f"  + {fc.path}: {json.dumps(fc.new_value, default=str)}")
            elif fc.change_type == "item_removed":
                click.echo(f"  - {fc.path}: {json.dumps(fc.old_value, default=str)}")
            else:
                click.echo(
                    f"  ~ {fc.path}: {json.dumps(fc.old_value, default=str)}"
                    f" -> {json.dumps(fc.new_value, default=str)}"
                )
