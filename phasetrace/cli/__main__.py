"""phasetrace CLI - Main Entry Point."""

import click

from . import __version__, __cli_name__
from .commands.demo import demo_command
from .commands.replay import replay_command


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.pass_context
def cli(ctx):
    """Print host lifecycle phases as timestamped trace blocks."""
    ctx.ensure_object(dict)


@cli.command("phases")
def phases():
    """List lifecycle phases in the order the host reaches them."""
    from phasetrace.events import Phase

    for phase in Phase:
        click.echo(f"  {phase.order + 1:>2}. {phase.label:<24} {click.style(phase.value, dim=True)}")


cli.add_command(demo_command)
cli.add_command(replay_command)


def main():
    """Entry point for `phasetrace` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
