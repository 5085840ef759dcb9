"""
CLI rendering of setup results.

Human output uses emoji markers and colors; ``--json`` output is the
result's ``to_dict()``.
"""

from __future__ import annotations

import json

import click

from laptop_setup.core.models.report import CertificationReport, InstallReport
from laptop_setup.core.models.tool import ToolDefinition
from laptop_setup.core.use_cases.setup_run import SetupRunResult

_OUTCOME_MARKERS = {
    "ok": ("✅", "green"),
    "skipped": ("⏭️ ", "yellow"),
    "failed": ("❌", "red"),
}


def render_json(result: SetupRunResult) -> None:
    click.echo(json.dumps(result.to_dict(), indent=2))


def render_error(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)


def render_usage(ctx: click.Context) -> None:
    """Print the usage line and help hint, like click does for bad options."""
    click.echo(ctx.get_usage(), err=True)
    click.echo(
        f"Try '{ctx.command_path} {ctx.help_option_names[0]}' for help.\n", err=True,
    )


def render_tools(result: SetupRunResult, tools: list[ToolDefinition]) -> None:
    """List the tools in scope for the selected profile."""
    click.secho(
        f"📋 {len(tools)} tool(s) for profile '{result.profile}' on {result.platform}:",
        fg="cyan", bold=True,
    )
    for tool in tools:
        click.echo(f"   • {tool.display_name:<25} {tool.mechanism.value}")


def _render_findings(findings: list) -> None:
    click.secho("\n🛡️  Security check:", fg="cyan", bold=True)
    if not findings:
        click.secho("   ✅ No forbidden applications found", fg="green")
        return
    for finding in findings:
        click.secho(f"   ⚠️  {finding.message}", fg="red")
        for i, step in enumerate(finding.removal_steps, 1):
            click.echo(f"      {i}. {step}")


def render_certification(report: CertificationReport, quiet: bool = False) -> None:
    """Print per-tool status and the certification summary."""
    if not quiet:
        click.secho(
            f"\n🔍 Certification for profile '{report.profile}' ({report.platform})",
            fg="cyan", bold=True,
        )
        for r in report.results:
            if r.installed:
                icon, color = "✅", "green"
            elif r.status == "unknown":
                icon, color = "⚠️ ", "yellow"
            else:
                icon, color = "❌", "red"
            detail = f"  ({r.detail})" if r.detail else ""
            click.secho(f"   {icon} {r.display_name}{detail}", fg=color)
        _render_findings(report.findings)

    click.secho("\n📊 Summary:", fg="cyan", bold=True)
    if report.ok:
        click.secho(
            f"   🎉 All required tools for profile '{report.profile}' are installed "
            "and there are no security warnings!",
            fg="green", bold=True,
        )
        return
    if report.missing_count:
        click.secho(f"   ❌ {report.missing_count} missing tool(s)", fg="red", bold=True)
        click.echo("   Run with -i/--install to install missing tools.")
    if report.warning_count:
        click.secho(f"   ⚠️  {report.warning_count} security warning(s)", fg="red", bold=True)
        click.echo("   Address the security warnings above.")


def render_installation(report: InstallReport, quiet: bool = False) -> None:
    """Print per-tool outcomes, failures and follow-up steps."""
    if not quiet:
        click.secho(
            f"\n📦 Installation for profile '{report.profile}' ({report.platform})",
            fg="cyan", bold=True,
        )
        for o in report.outcomes:
            icon, color = _OUTCOME_MARKERS[o.status]
            reason = f"  ({o.reason})" if o.reason else ""
            click.secho(f"   {icon} {o.display_name}{reason}", fg=color)
            for warning in o.warnings:
                click.secho(f"      ⚠️  {warning}", fg="yellow")
        _render_findings(report.findings)

    click.secho("\n📊 Summary:", fg="cyan", bold=True)
    click.echo(
        f"   Installed: {len(report.installed)}  "
        f"Skipped: {len(report.skipped)}  "
        f"Failed: {len(report.failed)}"
    )
    if report.failed:
        click.secho("   ❌ Failed:", fg="red", bold=True)
        for o in report.failed:
            click.echo(f"      • {o.display_name}: {o.reason}")

    if report.follow_ups:
        click.secho("\n📝 Next steps:", fg="cyan", bold=True)
        for i, step in enumerate(report.follow_ups, 1):
            click.echo(f"   {i}. {step}")
    click.echo()
