"""CLI entry point using Click."""

from __future__ import annotations

import logging
from pathlib import Path

import click


class _DefaultGroup(click.Group):
    """Insert 'run' when the first arg is not a registered subcommand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.no_args_is_help = False  # bare `tui-gantt` opens the current folder

    def invoke(self, ctx):
        if not ctx._protected_args and not ctx.args:
            ctx._protected_args = ["run"]
        return super().invoke(ctx)

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if cmd_name and cmd_name in self.commands:
            return super().resolve_command(ctx, args)
        return super().resolve_command(ctx, ["run"] + list(args))


def _vault_dir(path: str) -> Path:
    vault_dir = Path(path).resolve()
    if not vault_dir.is_dir():
        raise click.ClickException(f"'{vault_dir}' is not a directory.")
    return vault_dir


def _load_timeline(vault_dir: Path):
    from tui_gantt.config import load_config
    from tui_gantt.pipeline import build_timeline
    from tui_gantt.vault import load_vault

    config = load_config(vault_dir)
    vault = load_vault(vault_dir)
    for warning in vault.parse_warnings:
        click.echo(f"warning: {warning}", err=True)
    return build_timeline(vault.records, config.view)


@click.group(cls=_DefaultGroup)
@click.option("--no-color", is_flag=True, help="Disable color output")
@click.option("-v", "--verbose", is_flag=True, help="Log debug messages to stderr")
@click.version_option(package_name="tui-gantt")
@click.pass_context
def main(ctx, no_color: bool, verbose: bool) -> None:
    """TUI Gantt - Terminal Gantt chart for a folder of markdown notes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["no_color"] = no_color


@main.command()
@click.argument("path", default=".", type=click.Path())
@click.pass_context
def run(ctx, path: str) -> None:
    """Open the notes in PATH as a Gantt chart."""
    from tui_gantt.app import GanttApp

    app = GanttApp(vault_dir=_vault_dir(path), no_color=ctx.obj["no_color"])
    app.run()


@main.command("tasks")
@click.argument("path", default=".", type=click.Path())
def tasks_cmd(path: str) -> None:
    """Print the task list in chart order."""
    from rich.console import Console
    from rich.table import Table

    timeline = _load_timeline(_vault_dir(path))
    if timeline.needs_configuration:
        raise click.ClickException("No start date property found; set [view] start in .tui-gantt/config.toml.")

    table = Table(title="Tasks")
    table.add_column("Name")
    table.add_column("Start")
    table.add_column("End")
    if timeline.show_progress:
        table.add_column("Progress", justify="right")
    table.add_column("Depends on")

    for task in timeline.tasks:
        if task.is_group_header:
            table.add_section()
            table.add_row(f"[bold]{task.name}[/bold]")
            continue
        end = "◆" if task.is_milestone else task.end_str
        row = [task.name, task.start_str, end]
        if timeline.show_progress:
            row.append(f"{task.progress}%")
        row.append(", ".join(timeline.dependency_names(task)))
        table.add_row(*row)

    Console().print(table)


@main.command("detect")
@click.argument("path", default=".", type=click.Path())
def detect_cmd(path: str) -> None:
    """Show which note properties play which role."""
    timeline = _load_timeline(_vault_dir(path))
    for role, field_id in timeline.roles.as_dict().items():
        click.echo(f"{role:>13}: {field_id or '-'}")
    click.echo(f"{'show_progress':>13}: {timeline.show_progress}")


@main.command("export")
@click.argument("path", type=click.Path())
@click.argument("output", type=click.Path())
def export_cmd(path: str, output: str) -> None:
    """Export the chart to OUTPUT (.json, .csv or .mmd)."""
    from tui_gantt.export import export_timeline
    from tui_gantt.models import TuiGanttError

    timeline = _load_timeline(_vault_dir(path))
    try:
        fmt = export_timeline(timeline, Path(output))
    except TuiGanttError as e:
        raise click.ClickException(str(e))
    click.echo(f"Exported {fmt} to {output}")


@main.command("init")
@click.argument("path", default=".", type=click.Path())
@click.option("--name", default="", help="Project name shown in the title bar")
def init_cmd(path: str, name: str) -> None:
    """Write a default .tui-gantt/config.toml."""
    from tui_gantt.config import _get_config_path, save_config
    from tui_gantt.models import ProjectConfig

    vault_dir = Path(path).resolve()
    config_path = _get_config_path(vault_dir)
    if config_path.exists():
        raise click.ClickException(f"Already exists: {config_path}")
    vault_dir.mkdir(parents=True, exist_ok=True)
    save_config(vault_dir, ProjectConfig(name=name or vault_dir.name))
    click.echo(f"Created {config_path}")


@main.command("init-theme")
@click.argument("path", default=".", type=click.Path())
def init_theme_cmd(path: str) -> None:
    """Copy the default theme to .tui-gantt/theme.yaml for customization."""
    from tui_gantt.theme import init_theme

    try:
        dest = init_theme(_vault_dir(path))
    except FileExistsError as e:
        raise click.ClickException(f"Already exists: {e}")
    click.echo(f"Created {dest}")
