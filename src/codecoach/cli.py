"""CLI entry point for codecoach."""

from pathlib import Path

import click

from codecoach.config.settings import Settings, configure_logging


def _load_ledger(settings: Settings):
    from codecoach.state.ledger import ProgressLedger

    return ProgressLedger.load(settings.progress_db)


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """codecoach: heuristic code practice with persistent progress."""
    settings = Settings.load()
    configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the JSON-lines server on stdin/stdout."""
    import asyncio

    from codecoach.server.__main__ import serve as run_server

    asyncio.run(run_server(ctx.obj["settings"]))


@main.command()
@click.pass_context
def languages(ctx: click.Context) -> None:
    """List languages with overall completion."""
    from codecoach.catalog.registry import ExerciseCatalog
    from codecoach.engine.languages import Language

    settings = ctx.obj["settings"]
    ledger = _load_ledger(settings)
    authored = set(ExerciseCatalog(settings.catalog_dir).languages())
    for lang in Language:
        marker = "*" if ledger.is_language_complete(lang) else " "
        note = "" if lang in authored else " (no exercises yet)"
        click.echo(f" {marker} {lang.value:<15} {ledger.percentage(lang):>3}%{note}")


@main.command()
@click.argument("language")
@click.pass_context
def progress(ctx: click.Context, language: str) -> None:
    """Show per-difficulty completion for LANGUAGE."""
    from codecoach.engine.languages import ROSTER_SIZE, Difficulty, Language

    try:
        lang = Language.parse(language)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="LANGUAGE")

    ledger = _load_ledger(ctx.obj["settings"])
    click.echo(f"{lang.value}: {ledger.percentage(lang)}%")
    for d in Difficulty:
        done = ledger.completed_count(lang, d)
        click.echo(f"  {d.value:<8} {done:>2}/{ROSTER_SIZE}  {ledger.percentage_for_difficulty(lang, d):>3}%")
    if ledger.is_language_complete(lang):
        click.echo(f"All {lang.value} challenges complete: certificate unlocked.")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--language", "-l", required=True, help="Language the file is written in")
def check(file: Path, language: str) -> None:
    """Run the heuristic checks on FILE."""
    from codecoach.engine.analyzer import analyze, format_diagnostic, has_errors
    from codecoach.engine.languages import Language

    try:
        lang = Language.parse(language)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--language")

    diagnostics = analyze(file.read_text(encoding="utf-8"), lang)
    if not has_errors(diagnostics):
        click.echo("No issues found.")
        return
    for d in diagnostics:
        click.echo(format_diagnostic(d))
    click.echo(f"{len(diagnostics)} issue(s) found.")
    raise SystemExit(1)
