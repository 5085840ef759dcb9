"""
laptop-setup — CLI entrypoint.

Usage:
    laptop-setup -c                      # certify the laptop
    laptop-setup -i --profile engineering
    laptop-setup -c -i --automox-key KEY --sentinelone-token TOKEN
    python -m laptop_setup.main --help
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from laptop_setup import __version__
from laptop_setup.adapters.base import CommandExecutor
from laptop_setup.core.models.settings import Settings
from laptop_setup.core.observability.logging_config import resolve_level, setup_logging
from laptop_setup.core.services.setup.platforms import PLATFORMS


class SetupCommand(click.Command):
    """Command whose usage errors exit with status 1 instead of 2."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


def _make_executor(settings: Settings) -> CommandExecutor:
    from laptop_setup.adapters.shell.command import SubprocessExecutor

    return SubprocessExecutor(default_timeout=settings.command_timeout)


@click.command(cls=SetupCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="laptop-setup")
@click.option("--certification", "-c", "certification", is_flag=True,
              help="Check which required tools are installed.")
@click.option("--install", "-i", "installation", is_flag=True,
              help="Install the missing tools.")
@click.option("--profile", default=None,
              help="User profile: engineering, data or other (default: other).")
@click.option("--automox-key", envvar="LAPTOP_SETUP_AUTOMOX_KEY", default="",
              help="Automox access key, needed to install Automox.")
@click.option("--sentinelone-token", envvar="LAPTOP_SETUP_SENTINELONE_TOKEN", default="",
              help="SentinelOne registration token, needed to install SentinelOne.")
@click.option("--sentinelone-link", default=None,
              help="Download URL of the SentinelOne installer package.")
@click.option("--sentinelone-pkg-name", default=None,
              help="File name for the downloaded SentinelOne package.")
@click.option("--platform", "platform_name", type=click.Choice(sorted(PLATFORMS)), default=None,
              help="Force a platform instead of detecting it.")
@click.option("--manifest", "manifest_path", type=click.Path(dir_okay=False), default=None,
              help="Use a custom tool manifest (YAML).")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Settings file (default: ~/.config/laptop-setup/config.yml).")
@click.option("--list", "list_only", is_flag=True, help="List the tools in scope and exit.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only print summaries and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
def cli(
    certification: bool,
    installation: bool,
    profile: str | None,
    automox_key: str,
    sentinelone_token: str,
    sentinelone_link: str | None,
    sentinelone_pkg_name: str | None,
    platform_name: str | None,
    manifest_path: str | None,
    config_path: str | None,
    list_only: bool,
    as_json: bool,
    verbose: bool,
    quiet: bool,
    debug: bool,
) -> None:
    """Certify and set up a laptop with the tools its profile needs."""
    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        secrets=[s for s in (automox_key, sentinelone_token) if s],
    )

    from laptop_setup.core.use_cases.setup_run import run_setup
    from laptop_setup.ui.cli import report

    result = run_setup(
        _make_executor,
        certification=certification,
        installation=installation,
        list_only=list_only,
        profile=profile,
        automox_key=automox_key,
        sentinelone_token=sentinelone_token,
        sentinelone_link=sentinelone_link,
        sentinelone_pkg_name=sentinelone_pkg_name,
        platform_name=platform_name,
        manifest_path=Path(manifest_path) if manifest_path else None,
        config_path=Path(config_path) if config_path else None,
    )

    if as_json:
        report.render_json(result)
        sys.exit(result.exit_code)

    if result.error:
        if result.usage_error:
            report.render_usage(click.get_current_context())
        report.render_error(result.error)
        sys.exit(result.exit_code)

    if list_only:
        report.render_tools(result, result.tools)
    if result.certification is not None:
        report.render_certification(result.certification, quiet=quiet)
    if result.installation is not None:
        report.render_installation(result.installation, quiet=quiet)
    sys.exit(result.exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
