# file: callscreen/cli.py
"""
callscreen CLI.

Commands:
  - screen: decide whether a call from NUMBER would be allowed or silenced
  - screen-batch: screen one number per line from a file and export a report
  - classify: show the canonical form and numbering-plan type of a number
  - allow: manage the allow-list
  - contacts / log: seed the local data store
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from callscreen import __version__
from callscreen.config import ScreeningSettings, load_settings
from callscreen.core.classify import NumberFacts
from callscreen.core.parser import ParseError, format_e164, parse_number
from callscreen.io.report import build_report, export_csv, export_json
from callscreen.logging_config import configure_logging
from callscreen.screening.engine import ScreeningEngine, ScreeningResult
from callscreen.screening.sources import DataSources, StaticRegionProvider
from callscreen.store import CallType, MessageBox, SQLiteDataStore

logger = logging.getLogger(__name__)

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config path.",
)
_region_option = click.option(
    "--region", default=None, help="Home region (ISO alpha-2); overrides the configured one."
)
_db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="SQLite data store path; overrides the configured one.",
)


def _settings(config_path: Path | None) -> ScreeningSettings:
    try:
        settings = load_settings(yaml_path=config_path)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc
    configure_logging(level=settings.log_level, json_logging=settings.json_logging)
    return settings


def _store(settings: ScreeningSettings, *, region: str | None, db_path: Path | None) -> SQLiteDataStore:
    return SQLiteDataStore(
        db_path or settings.db_path,
        region=region or settings.home_region,
        granted=settings.granted_permissions,
    )


def _engine(store: SQLiteDataStore) -> ScreeningEngine:
    sources = DataSources(
        region=StaticRegionProvider(store.region),
        contacts=store,
        call_log=store,
        message_log=store,
        allow_list=store,
    )
    return ScreeningEngine(sources)


def _human_text(result: ScreeningResult) -> str:
    verdict = "ALLOW" if result.allowed else "SILENCE"
    lines = [f"{verdict} {result.e164 or result.number}"]
    if result.matched_by:
        lines.append(f"  matched by: {result.matched_by}")
    if result.error:
        lines.append(f"  error: {result.error}")
    return "\n".join(lines)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__)
def main() -> None:
    """Decide whether incoming calls are allowed or silenced."""


@main.command("screen")
@click.argument("number", type=str)
@_config_option
@_region_option
@_db_option
@click.option("--json", "as_json", is_flag=True, help="Print the JSON report to stdout.")
@click.option(
    "--report",
    "report_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the JSON report to a file.",
)
def screen_cmd(
    number: str,
    config_path: Path | None,
    region: str | None,
    db_path: Path | None,
    as_json: bool,
    report_path: Path | None,
) -> None:
    """
    Screen a call from NUMBER using the configured heuristics.
    """

    settings = _settings(config_path)
    store = _store(settings, region=region, db_path=db_path)
    config = settings.screening_config()
    result = _engine(store).screen(number, config)
    report = build_report([result], config=config, home_region=store.region)

    if report_path is not None:
        export_json(report, report_path)

    if as_json:
        click.echo(json.dumps(report, indent=2, sort_keys=True))
    else:
        click.echo(_human_text(result))


@main.command("screen-batch")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_config_option
@_region_option
@_db_option
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "csv"], case_sensitive=False),
    default="csv",
    show_default=True,
)
@click.option("--output", "output_path", type=click.Path(path_type=Path), default=None)
def screen_batch_cmd(
    input_file: Path,
    config_path: Path | None,
    region: str | None,
    db_path: Path | None,
    fmt: str,
    output_path: Path | None,
) -> None:
    """
    Screen every number in INPUT_FILE (one per line) and export a report.
    """

    settings = _settings(config_path)
    store = _store(settings, region=region, db_path=db_path)
    engine = _engine(store)

    numbers = [
        line.strip()
        for line in input_file.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]
    config = settings.screening_config()
    results = [engine.screen(n, config) for n in numbers]
    report = build_report(results, config=config, home_region=store.region)

    if output_path is None:
        output_path = input_file.with_suffix(f".{fmt.lower()}")

    if fmt.lower() == "json":
        export_json(report, output_path)
    else:
        export_csv(report, output_path)

    allowed = sum(1 for r in results if r.allowed)
    logger.info("Screened %d numbers, %d allowed", len(results), allowed)
    click.echo(str(output_path))


@main.command("classify")
@click.argument("number", type=str)
@_config_option
@_region_option
def classify_cmd(number: str, config_path: Path | None, region: str | None) -> None:
    """Show the canonical form and numbering-plan type of NUMBER."""

    settings = _settings(config_path)
    home_region = region or settings.home_region
    try:
        parsed = parse_number(number, home_region)
    except ParseError as exc:
        raise click.ClickException(str(exc)) from exc

    facts = NumberFacts(parsed, home_region)
    payload: dict[str, Any] = {
        "e164": format_e164(parsed),
        "country_code": parsed.country_code,
        "national_number": parsed.national_number,
        "type": facts.number_type.value,
        "home_region": home_region,
        "local": facts.is_local,
    }
    for key, value in payload.items():
        click.echo(f"{key}: {value}")


@main.group("allow")
def allow_group() -> None:
    """Manage the allow-list."""


@allow_group.command("add")
@click.argument("phone_number", type=str)
@_config_option
@_db_option
def allow_add_cmd(phone_number: str, config_path: Path | None, db_path: Path | None) -> None:
    """Add PHONE_NUMBER to the allow-list (stored as entered)."""

    settings = _settings(config_path)
    store = _store(settings, region=None, db_path=db_path)
    entry = store.add_allowed(phone_number)
    click.echo(f"{entry.id}\t{entry.phone_number}")


@allow_group.command("list")
@_config_option
@_db_option
@click.option("--json", "as_json", is_flag=True, help="Print entries as JSON.")
def allow_list_cmd(config_path: Path | None, db_path: Path | None, as_json: bool) -> None:
    """List allow-list entries."""

    settings = _settings(config_path)
    store = _store(settings, region=None, db_path=db_path)
    entries = store.list_allowed()
    if as_json:
        click.echo(json.dumps([e.to_dict() for e in entries], indent=2))
        return
    for e in entries:
        state = "active" if e.is_active else "inactive"
        click.echo(f"{e.id}\t{e.phone_number}\t{state}")


def _set_active(entry_id: int, active: bool, config_path: Path | None, db_path: Path | None) -> None:
    settings = _settings(config_path)
    store = _store(settings, region=None, db_path=db_path)
    try:
        store.set_allowed_active(entry_id, active)
    except KeyError as exc:
        raise click.ClickException(f"No allow-list entry with id {entry_id}") from exc


@allow_group.command("enable")
@click.argument("entry_id", type=int)
@_config_option
@_db_option
def allow_enable_cmd(entry_id: int, config_path: Path | None, db_path: Path | None) -> None:
    """Mark allow-list entry ENTRY_ID as active."""

    _set_active(entry_id, True, config_path, db_path)


@allow_group.command("disable")
@click.argument("entry_id", type=int)
@_config_option
@_db_option
def allow_disable_cmd(entry_id: int, config_path: Path | None, db_path: Path | None) -> None:
    """Mark allow-list entry ENTRY_ID as inactive."""

    _set_active(entry_id, False, config_path, db_path)


@allow_group.command("remove")
@click.argument("entry_id", type=int)
@_config_option
@_db_option
def allow_remove_cmd(entry_id: int, config_path: Path | None, db_path: Path | None) -> None:
    """Delete allow-list entry ENTRY_ID."""

    settings = _settings(config_path)
    store = _store(settings, region=None, db_path=db_path)
    try:
        store.remove_allowed(entry_id)
    except KeyError as exc:
        raise click.ClickException(f"No allow-list entry with id {entry_id}") from exc


@main.group("contacts")
def contacts_group() -> None:
    """Manage the local address book."""


@contacts_group.command("add")
@click.argument("number", type=str)
@click.option("--name", default="", help="Display name.")
@_config_option
@_region_option
@_db_option
def contacts_add_cmd(
    number: str, name: str, config_path: Path | None, region: str | None, db_path: Path | None
) -> None:
    """Add NUMBER to the address book."""

    settings = _settings(config_path)
    store = _store(settings, region=region, db_path=db_path)
    try:
        click.echo(store.add_contact(number, name=name))
    except ParseError as exc:
        raise click.ClickException(str(exc)) from exc


@main.group("log")
def log_group() -> None:
    """Record call and message history in the local data store."""


@log_group.command("call")
@click.argument("number", type=str)
@click.option(
    "--type",
    "call_type",
    type=click.Choice([t.value for t in CallType], case_sensitive=False),
    default=CallType.OUTGOING.value,
    show_default=True,
)
@click.option("--timestamp-ms", type=int, default=None, help="Call time (default: now).")
@_config_option
@_region_option
@_db_option
def log_call_cmd(
    number: str,
    call_type: str,
    timestamp_ms: int | None,
    config_path: Path | None,
    region: str | None,
    db_path: Path | None,
) -> None:
    """Record a call with NUMBER."""

    settings = _settings(config_path)
    store = _store(settings, region=region, db_path=db_path)
    try:
        dial = store.record_call(number, CallType(call_type.lower()), timestamp_ms=timestamp_ms)
    except ParseError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(dial)


@log_group.command("message")
@click.argument("address", type=str)
@click.option(
    "--box",
    type=click.Choice([b.value for b in MessageBox], case_sensitive=False),
    default=MessageBox.INBOX.value,
    show_default=True,
)
@click.option("--timestamp-ms", type=int, default=None, help="Message time (default: now).")
@_config_option
@_db_option
def log_message_cmd(
    address: str,
    box: str,
    timestamp_ms: int | None,
    config_path: Path | None,
    db_path: Path | None,
) -> None:
    """Record a message exchanged with ADDRESS (stored verbatim)."""

    settings = _settings(config_path)
    store = _store(settings, region=None, db_path=db_path)
    store.record_message(address, MessageBox(box.lower()), timestamp_ms=timestamp_ms)
    click.echo(address)
