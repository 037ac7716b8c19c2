"""Click CLI with commands: clean, refresh-rules, rules-status, options."""

from __future__ import annotations

import json
import sys

import click

from nudelink.cleaner import clean_url, describe_result
from nudelink.config import load_options, save_options
from nudelink.logging import setup_logging
from nudelink.rule_store import ensure_fresh_rules, load_ruleset, rules_status
from nudelink.settings import Settings
from nudelink.statuses import Engine


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Nudelink — strip tracking parameters and unwrap redirectors."""
    ctx.ensure_object(dict)
    settings = Settings()
    ctx.obj["settings"] = settings
    ctx.obj["log"] = setup_logging(settings.log_dir, verbose=verbose)


@cli.command()
@click.argument("url")
@click.option(
    "--engine",
    type=click.Choice([e.value for e in Engine]),
    default=Engine.HEURISTIC.value,
    show_default=True,
    help="Which cleaner to run.",
)
@click.option("--keep", "keep_params", multiple=True, help="Parameter to always keep (repeatable).")
@click.option("--remove", "extra_bad_params", multiple=True, help="Extra parameter to remove (repeatable).")
@click.option("--referral/--no-referral", default=None, help="Remove referral/affiliate parameters.")
@click.option("--hash/--no-hash", "clean_hash", default=None, help="Keep and clean the #fragment (otherwise drop it).")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
@click.pass_context
def clean(
    ctx: click.Context,
    url: str,
    engine: str,
    keep_params: tuple[str, ...],
    extra_bad_params: tuple[str, ...],
    referral: bool | None,
    clean_hash: bool | None,
    as_json: bool,
) -> None:
    """Clean URL ('-' reads it from stdin)."""
    settings = ctx.obj["settings"]
    log = ctx.obj["log"]

    if url == "-":
        url = sys.stdin.read().strip()

    user = load_options(settings.options_path)
    if referral is not None:
        user.remove_referral = referral
    if clean_hash is not None:
        user.clean_hash = clean_hash
    options = user.cleaning_options(keep_params=keep_params, extra_bad_params=extra_bad_params)

    ruleset = None
    if engine != Engine.HEURISTIC:
        ruleset = load_ruleset(settings.rules_path, log)
        if ruleset is None:
            log.warning("cli.rules_missing", path=str(settings.rules_path))

    result = clean_url(url, options, ruleset, engine=Engine(engine))
    log.debug("cli.cleaned", engine=engine, changed=result.changed, error=result.error)

    if as_json:
        click.echo(result.model_dump_json())
    else:
        click.echo(result.url)
        click.echo(describe_result(result), err=True)

    if result.error:
        raise SystemExit(1)


@cli.command("refresh-rules")
@click.pass_context
def refresh_rules(ctx: click.Context) -> None:
    """Download and verify the latest rules now."""
    settings = ctx.obj["settings"]
    log = ctx.obj["log"]

    outcome = ensure_fresh_rules(settings, log)
    if outcome.ok:
        click.echo(f"Rules updated. Next refresh in {outcome.next_refresh_minutes} min.")
    else:
        click.echo(f"Refresh failed. Retry in {outcome.next_refresh_minutes} min.")
        raise SystemExit(1)


@cli.command("rules-status")
@click.pass_context
def rules_status_cmd(ctx: click.Context) -> None:
    """Show cached rules metadata and retry state."""
    click.echo(json.dumps(rules_status(ctx.obj["settings"]), indent=2))


@cli.command()
@click.option("--referral/--no-referral", default=None, help="Remove referral/affiliate parameters.")
@click.option("--hash/--no-hash", "clean_hash", default=None, help="Keep and clean the #fragment.")
@click.pass_context
def options(ctx: click.Context, referral: bool | None, clean_hash: bool | None) -> None:
    """Show or update persisted cleaning options."""
    settings = ctx.obj["settings"]
    user = load_options(settings.options_path)

    if referral is not None or clean_hash is not None:
        if referral is not None:
            user.remove_referral = referral
        if clean_hash is not None:
            user.clean_hash = clean_hash
        save_options(user, settings.options_path)

    click.echo(f"remove_referral: {user.remove_referral}")
    click.echo(f"clean_hash: {user.clean_hash}")
