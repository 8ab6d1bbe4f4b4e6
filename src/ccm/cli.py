"""CLI interface for ccm."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import NoReturn

import click

from ccm import __version__
from ccm.config import CONFIG_DIR_ENV, SETTINGS_PATH_ENV, Paths, resolve_paths
from ccm.errors import CancelledByUser, CcmError, ProfileAlreadyExists
from ccm.profiles import (
    AUTH_TOKEN,
    BASE_URL,
    OPTIONAL_KEYS,
    Profile,
    create_profile,
    delete_profile,
    find_profile,
    get_current,
    get_project_profile,
    list_profiles,
    load_profile,
    profile_exists,
    rename_profile,
    validate_name,
)
from ccm.project import ClearStatus, clear_project, switch_project
from ccm.storage import dumps
from ccm.sync import (
    Conflict,
    DiffResult,
    SwitchDecision,
    SyncStatus,
    import_current,
    render_diff,
    switch_to,
    sync_current,
)

CLAUDE_BIN = "claude"


def styled(text: str, **kwargs) -> str:
    return click.style(text, **kwargs)


def info(msg: str) -> None:
    click.echo(f"  {msg}")


def success(msg: str) -> None:
    click.echo(f"  {styled(msg, fg='green')}")


def warn(msg: str) -> None:
    click.echo(f"  {styled(msg, fg='yellow')}")


def error(msg: str) -> None:
    click.echo(f"  {styled(msg, fg='red')}")


def heading(msg: str) -> None:
    click.echo(f"\n  {styled(msg, bold=True)}")


def fail(exc: CcmError) -> NoReturn:
    error(str(exc))
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="ccm")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option(
    "--config-dir",
    envvar=CONFIG_DIR_ENV,
    type=click.Path(file_okay=False),
    default=None,
    help=f"ccm config directory (env: {CONFIG_DIR_ENV}).",
)
@click.option(
    "--settings",
    "settings_path",
    envvar=SETTINGS_PATH_ENV,
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Claude settings.json to manage (env: {SETTINGS_PATH_ENV}).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    settings_path: str | None,
) -> None:
    """Manage multiple Claude Code configurations (profiles) and switch between them."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["paths"] = resolve_paths(config_dir, settings_path)
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )


def _paths(ctx: click.Context) -> Paths:
    return ctx.obj["paths"]


@cli.command()
@click.argument("name")
@click.option(
    "--env",
    "env_pairs",
    multiple=True,
    metavar="KEY=VALUE",
    help="Additional environment variable (repeatable).",
)
@click.pass_context
def add(ctx: click.Context, name: str, env_pairs: tuple[str, ...]) -> None:
    """Add a profile, prompting for the Anthropic settings."""
    paths = _paths(ctx)
    try:
        name = validate_name(name)
        if profile_exists(paths, name):
            raise ProfileAlreadyExists(name)
    except CcmError as e:
        fail(e)

    click.echo()
    info(f"Adding profile '{name}' - please answer the following questions:")

    env: dict[str, str] = {}
    env[BASE_URL] = click.prompt(f"  {BASE_URL}", type=str).strip()
    env[AUTH_TOKEN] = click.prompt(f"  {AUTH_TOKEN}", type=str, hide_input=True).strip()

    for key in OPTIONAL_KEYS:
        value = click.prompt(
            f"  {key} (optional, Enter to skip)",
            default="",
            show_default=False,
        ).strip()
        if value:
            env[key] = value

    for pair in env_pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            warn(f"Ignoring invalid env format '{pair}' (expected KEY=VALUE)")
            continue
        env[key.strip()] = value.strip()

    try:
        profile = create_profile(paths, Profile(name=name, env=env))
    except CcmError as e:
        fail(e)

    click.echo()
    success(f"Profile '{profile.name}' created at {paths.profile_path(profile.name)}")
    click.echo()


@cli.command("list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List saved profiles (marks the current one)."""
    paths = _paths(ctx)
    try:
        names = list_profiles(paths)
        current = get_current(paths)
        project = get_project_profile(paths, Path.cwd())
    except CcmError as e:
        fail(e)

    heading(f"Profiles in {paths.profiles_dir}")
    click.echo()

    if not names:
        info("No profiles yet. Try: ccm add <name>")
    for name in names:
        if name == current:
            info(f"- {styled(name, bold=True)} {styled('(current)', fg='green')}")
        elif name == project:
            info(f"- {styled(name, bold=True)} {styled('(current project)', fg='cyan')}")
        else:
            info(f"- {name}")

    if current and current not in names:
        click.echo()
        warn(f"Current profile '{current}' no longer exists.")
    click.echo()


cli.add_command(list_cmd, "ls")


@cli.command()
@click.argument("name")
@click.option("--reveal", is_flag=True, help="Print the auth token unmasked.")
@click.pass_context
def show(ctx: click.Context, name: str, reveal: bool) -> None:
    """Show a profile's content."""
    try:
        profile = load_profile(_paths(ctx), name)
    except CcmError as e:
        fail(e)

    doc = profile.to_document()
    token = profile.env.get(AUTH_TOKEN)
    if not reveal and isinstance(token, str):
        doc["env"][AUTH_TOKEN] = mask_secret(token)
    click.echo(dumps(doc), nl=False)


@cli.command()
@click.pass_context
def current(ctx: click.Context) -> None:
    """Print the active profile name."""
    paths = _paths(ctx)
    try:
        name = get_current(paths)
        exists = name is not None and profile_exists(paths, name)
    except CcmError as e:
        fail(e)

    if name is None:
        info("No profile is currently active.")
    elif not exists:
        warn(f"{name} (profile file missing)")
    else:
        click.echo(name)


@cli.command("remove")
@click.argument("name")
@click.pass_context
def remove_cmd(ctx: click.Context, name: str) -> None:
    """Remove a profile."""
    try:
        delete_profile(_paths(ctx), name, project_dir=Path.cwd())
    except CcmError as e:
        fail(e)
    success(f"Removed profile '{name}'")


cli.add_command(remove_cmd, "rm")


@cli.command()
@click.argument("old")
@click.argument("new")
@click.pass_context
def rename(ctx: click.Context, old: str, new: str) -> None:
    """Rename a profile."""
    try:
        rename_profile(_paths(ctx), old, new)
    except CcmError as e:
        fail(e)
    success(f"Profile '{old}' renamed to '{new}'")


@cli.command()
@click.argument("name")
@click.pass_context
def edit(ctx: click.Context, name: str) -> None:
    """Open a profile in $EDITOR."""
    paths = _paths(ctx)
    try:
        name = validate_name(name)
    except CcmError as e:
        fail(e)
    path = paths.profile_path(name)
    if not path.is_file():
        error(f"Profile '{name}' does not exist")
        sys.exit(1)

    info(f"Opening profile '{name}'...")
    click.edit(filename=str(path))

    try:
        find_profile(paths, name)
    except CcmError as e:
        fail(e)
    success(f"Profile '{name}' edited")


@cli.command("switch")
@click.argument("name")
@click.option(
    "--project",
    "-p",
    "project_mode",
    is_flag=True,
    help="Merge into ./.claude/settings.local.json for this project only.",
)
@click.pass_context
def switch_cmd(ctx: click.Context, name: str, project_mode: bool) -> None:
    """Switch Claude settings to a profile."""
    paths = _paths(ctx)
    if project_mode:
        project_dir = Path.cwd()
        try:
            written = switch_project(paths, name, project_dir)
        except CcmError as e:
            fail(e)
        success(
            f"Switched to profile '{name}' for project {project_dir} (wrote to {written})"
        )
        return

    try:
        outcome = switch_to(
            paths,
            name,
            lambda conflict: prompt_switch_decision(conflict, str(paths.settings_path)),
        )
    except CancelledByUser:
        warn("Switch operation cancelled. Nothing was changed.")
        return
    except CcmError as e:
        fail(e)

    if outcome.absorbed is not None:
        success(f"Profile '{outcome.previous}' updated from {paths.settings_path}")
    success(
        f"Switched Claude settings to profile '{outcome.name}' "
        f"(wrote to {paths.settings_path})"
    )


cli.add_command(switch_cmd, "swc")


@cli.command("clear-project")
@click.pass_context
def clear_project_cmd(ctx: click.Context) -> None:
    """Stop using a project-specific profile in the current directory."""
    project_dir = Path.cwd()
    try:
        outcome = clear_project(_paths(ctx), project_dir)
    except CcmError as e:
        fail(e)

    if outcome.status is ClearStatus.NOT_SET:
        info(f"No project-specific profile is set for {project_dir}")
        return
    if outcome.status is ClearStatus.PROFILE_MISSING:
        warn(f"Profile '{outcome.name}' not found. The project mapping was removed.")
        info(f"Delete {outcome.path} manually if needed.")
        return
    if outcome.status is ClearStatus.REMOVED_FILE:
        success(f"Removed {outcome.path} (no remaining settings)")
    else:
        success(f"Removed profile '{outcome.name}' fields from {outcome.path}")
    success(f"Cleared project-specific profile for {project_dir}. Using the global profile.")


@cli.command()
@click.pass_context
def sync(ctx: click.Context) -> None:
    """Update the current profile from Claude's settings.json."""
    paths = _paths(ctx)
    try:
        outcome = sync_current(paths)
    except CcmError as e:
        fail(e)

    if outcome.status is SyncStatus.NOTHING_TO_SYNC:
        if outcome.name:
            warn(f"Current profile '{outcome.name}' no longer exists. Nothing to sync.")
        else:
            info("No profile is currently active. Nothing to sync.")
    elif outcome.status is SyncStatus.IN_SYNC:
        success(f"Settings and current profile '{outcome.name}' are already in sync")
    else:
        describe_diff(outcome.diff)
        success(
            f"Synced current profile '{outcome.name}' "
            f"(updated {paths.profile_path(outcome.name)})"
        )


@cli.command("import-current")
@click.argument("name")
@click.option("--force", is_flag=True, help="Overwrite an existing profile.")
@click.pass_context
def import_current_cmd(ctx: click.Context, name: str, force: bool) -> None:
    """Import Claude's current settings.json as a profile."""
    paths = _paths(ctx)
    try:
        profile = import_current(paths, name, force=force)
    except CcmError as e:
        fail(e)
    success(
        f"Imported current settings to profile '{profile.name}' "
        f"at {paths.profile_path(profile.name)}"
    )


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Launch Claude Code with the current profile."""
    paths = _paths(ctx)
    try:
        name = get_current(paths)
    except CcmError as e:
        fail(e)

    if name is None:
        error("No profile is currently active.")
        info("Add one with 'ccm add <name>' and activate it with 'ccm switch <name>'.")
        sys.exit(1)

    exe = shutil.which(CLAUDE_BIN)
    if exe is None:
        error(f"'{CLAUDE_BIN}' not found in PATH.")
        sys.exit(1)

    info(f"Launching Claude Code with profile '{name}'...")
    result = subprocess.run([exe, *args])
    sys.exit(result.returncode)


# ---------------------------------------------------------------------------
# Prompting and display helpers
# ---------------------------------------------------------------------------


def prompt_switch_decision(
    conflict: Conflict, settings_label: str = "settings.json"
) -> SwitchDecision:
    """Show how the current profile drifted and ask what to do about it."""
    click.echo()
    warn("Configuration mismatch detected!")
    info(f"Current profile '{conflict.current}' differs from {settings_label}")
    click.echo()
    describe_diff(conflict.diff)
    click.echo()

    text = render_diff(
        conflict.stored,
        conflict.live,
        from_label=f"profile/{conflict.current}",
        to_label=settings_label,
    )
    for line in text.splitlines():
        if line.startswith("+") and not line.startswith("+++"):
            click.echo(styled(line, fg="green"))
        elif line.startswith("-") and not line.startswith("---"):
            click.echo(styled(line, fg="red"))
        else:
            click.echo(line)
    click.echo()

    info("What would you like to do?")
    info("  1: Switch directly (ignore the difference)")
    info(f"  2: Update current profile with {settings_label}, then switch")
    info("  3: Cancel switch operation")
    choice = click.prompt("  Your choice [1-3]", default="", show_default=False).strip()

    if choice == "1":
        return SwitchDecision.DIRECT
    if choice == "2":
        return SwitchDecision.ABSORB
    if choice != "3":
        warn("Invalid choice.")
    return SwitchDecision.CANCEL


def describe_diff(diff: DiffResult | None) -> None:
    if diff is None:
        return
    for key in diff.changed:
        info(f"  ~ {styled(key, fg='yellow')} (changed)")
    for key in diff.added:
        info(f"  + {styled(key, fg='green')} (only in settings)")
    for key in diff.removed:
        info(f"  - {styled(key, fg='red')} (only in profile)")


def mask_secret(value: str) -> str:
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}{'*' * 8}{value[-4:]}"
