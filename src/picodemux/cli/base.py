import click
import simplejson as json

from picodemux.types import DemuxConfig, load_config
from picodemux.util import DEFAULT_LOGLEVEL


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        click.echo(f"{prefix}└── {sub}")
        if isinstance(sub_cmd, click.Group):
            print_tree(sub_cmd, prefix + "    ", ctx)


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


def log_options(f):
    """Add the shared logging options to a command."""
    options = [
        click.option(
            "--log-to-file/--no-log-to-file",
            "-ltf/",
            default=False,
            help="Enable/disable logging to file (default: disabled)",
        ),
        click.option(
            "--log-to-stdout/--no-log-to-stdout",
            "-lts/",
            default=True,
            help="Enable/disable console logging (default: enabled)",
        ),
        click.option(
            "--log-path",
            "-lp",
            default="",
            help="Custom path for log file (default: ~/.picodemux/demux.log)",
        ),
        click.option(
            "--log-level",
            "-ll",
            default=DEFAULT_LOGLEVEL,
            help="Logging level (DEBUG, INFO, WARNING, ERROR) (default: INFO)",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def setup_logging(
    log_path: str = "",
    log_to_file: bool = False,
    log_to_stdout: bool = True,
    log_level: str = DEFAULT_LOGLEVEL,
) -> None:
    """Configure logging based on the shared CLI options.

    The log is shut down again when the running command finishes.
    """
    from picodemux.util.logging import shutdown_log, start_log

    start_log(
        log_to_file=log_to_file,
        log_to_stdout=log_to_stdout,
        log_path=log_path,
        log_level=log_level,
    )
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.call_on_close(shutdown_log)


@click.group()
@tree_option
def cli():
    """picodemux - recover time-multiplexed virtual channels from digitizer data.

    An external controller multiplexes several signals onto one scope input and
    marks every cycle with a sync pulse. picodemux finds those pulses and
    returns one value per virtual channel per cycle.
    """
    pass


@cli.command()
@click.option(
    "--config",
    "-cf",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Show this json config (with defaults filled in) instead of the defaults",
)
def config(config_path):
    """Print a demux configuration as json."""
    try:
        demux_config = load_config(config_path) if config_path else DemuxConfig()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config")
    click.echo(json.dumps(demux_config.to_dict(), indent=4))
