"""
wdkpack — CLI entrypoint.

Usage:
    wdkpack --help
    wdkpack build --profile release
    wdkpack package --target-arch arm64 --verify-signature
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from wdkpack import __version__
from wdkpack.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="wdkpack")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to wdkpack.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """wdkpack — build and package Windows driver crates."""
    from wdkpack.core.models.target import Verbosity

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    level: str | None = None
    if debug:
        level = "DEBUG"
        ctx.obj["verbosity"] = Verbosity.DEBUG
    elif verbose:
        level = "DEBUG"
        ctx.obj["verbosity"] = Verbosity.VERBOSE
    elif quiet:
        level = "ERROR"
        ctx.obj["verbosity"] = Verbosity.QUIET
    else:
        ctx.obj["verbosity"] = Verbosity.NORMAL

    setup_logging(
        level=level,
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


def _make_providers():
    """Production collaborators: real processes, real files, real WDK."""
    from wdkpack.adapters.shell.command import ShellCommandExecutor
    from wdkpack.adapters.shell.filesystem import LocalFilesystem
    from wdkpack.adapters.wdk.build_info import WdkBuildInfo

    return ShellCommandExecutor(), LocalFilesystem(), WdkBuildInfo()


def _print_error(error: Exception) -> None:
    from wdkpack.core.errors import iter_error_chain

    click.secho(f"❌ {error}", fg="red", err=True)
    for name, failure in getattr(error, "failures", {}).items():
        click.secho(f"   ✗ {name}: {failure}", fg="red", err=True)
    for cause in list(iter_error_chain(error))[1:]:
        click.echo(f"   Caused by: {cause}", err=True)


def _run(
    ctx: click.Context,
    cwd: str | None,
    profile: str | None,
    target_arch: str | None,
    package: bool,
    verify_signature: bool = False,
    sample: bool = False,
    as_json: bool = False,
) -> None:
    from wdkpack.core.config.loader import load_settings
    from wdkpack.core.errors import WdkPackError
    from wdkpack.core.models.target import ArchitectureSelection, Profile
    from wdkpack.core.use_cases.build import BuildAction, BuildActionParams

    working_dir = Path(cwd).absolute() if cwd else Path.cwd()
    action: BuildAction | None = None

    try:
        settings = load_settings(path=ctx.obj.get("config_path"), start_dir=working_dir)

        # CLI flags win over wdkpack.yml
        selected_profile = Profile(profile) if profile else settings.profile
        params = BuildActionParams(
            working_dir=working_dir,
            profile=selected_profile,
            target_arch=ArchitectureSelection.parse(target_arch or settings.target_arch),
            package=package,
            verify_signature=verify_signature or settings.verify_signature,
            sample_class=sample or settings.sample,
            verbosity=ctx.obj["verbosity"],
            signing=settings.signing,
        )

        command_exec, fs, build_info = _make_providers()
        action = BuildAction(params, command_exec, fs, build_info)
        report = action.run()
    except WdkPackError as e:
        if as_json and action is not None:
            click.echo(json.dumps({**action.report.to_dict(), "error": str(e)}, indent=2))
        _print_error(e)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if ctx.obj.get("quiet"):
        return

    if report.packaged:
        click.secho(f"✅ Packaged: {', '.join(report.packaged)}", fg="green", bold=True)
    elif package:
        click.secho("⚠️  No driver packages were produced", fg="yellow")
    else:
        click.secho(f"✅ Built: {', '.join(report.built)}", fg="green", bold=True)
    if report.skipped:
        click.echo(f"   Skipped (not drivers): {', '.join(report.skipped)}")


_cwd_option = click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Project, workspace, or directory of projects (default: current directory).",
)
_profile_option = click.option(
    "--profile",
    type=click.Choice(["dev", "release"]),
    default=None,
    help="Cargo build profile.",
)
_target_arch_option = click.option(
    "--target-arch",
    type=click.Choice(["amd64", "arm64", "host"], case_sensitive=False),
    default=None,
    help="Target architecture (default: ask rustc for its host).",
)
_json_option = click.option(
    "--json-output", "--json", "as_json", is_flag=True, help="Output as JSON."
)


@cli.command()
@_cwd_option
@_profile_option
@_target_arch_option
@_json_option
@click.pass_context
def build(
    ctx: click.Context,
    cwd: str | None,
    profile: str | None,
    target_arch: str | None,
    as_json: bool,
) -> None:
    """Compile the project without packaging."""
    _run(ctx, cwd, profile, target_arch, package=False, as_json=as_json)


@cli.command()
@_cwd_option
@_profile_option
@_target_arch_option
@click.option(
    "--verify-signature",
    is_flag=True,
    help="Verify the driver and catalog signatures after signing.",
)
@click.option(
    "--sample",
    is_flag=True,
    help="Treat the drivers as sample-class (adjusts InfVerif).",
)
@_json_option
@click.pass_context
def package(
    ctx: click.Context,
    cwd: str | None,
    profile: str | None,
    target_arch: str | None,
    verify_signature: bool,
    sample: bool,
    as_json: bool,
) -> None:
    """Build, then package every driver into a signed driver package."""
    _run(
        ctx,
        cwd,
        profile,
        target_arch,
        package=True,
        verify_signature=verify_signature,
        sample=sample,
        as_json=as_json,
    )


if __name__ == "__main__":
    cli()
