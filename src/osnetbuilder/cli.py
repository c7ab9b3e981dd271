import click
import functools
import logging
import traceback
import asyncio
import yaml
from pathlib import Path

from .config import Config
from .builder import GraphGenerator, Mapper, build_graph
from .engines import MemoryEngine
from .topology import NetworkTopology
from .utils import setup_logger, parse_module_levels
from .exceptions import (
    OSNetBuilderError,
    ConfigurationError,
    DefinitionError,
    ProvisioningFailure,
    ProvisioningError,
)
from . import __version__


def complete_config_files(ctx, param, incomplete):
    """Auto-complete .yml and .yaml config files in current directory"""
    cwd = Path.cwd()
    yml_files = list(cwd.glob('*.yml')) + list(cwd.glob('*.yaml'))
    return sorted(f.name for f in yml_files if f.name.startswith(incomplete))


def setup_logging(debug: bool, log_levels: str = None, log_file: str = None):
    """Setup logger with debug and module-level configuration"""
    module_levels = parse_module_levels(log_levels) if log_levels else None
    setup_logger(debug=debug, module_levels=module_levels, log_file=log_file)


def _abort(kind: str, error: Exception):
    logging.error(f"{kind}: {error}")
    ctx = click.get_current_context()
    if ctx.obj and ctx.obj.get('debug'):
        traceback.print_exc()
    raise click.Abort()


def handle_errors(func):
    """Decorator to handle common exceptions"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            _abort("Configuration error", e)
        except DefinitionError as e:
            _abort("Definition error", e)
        except ProvisioningFailure as e:
            if e.outputs is not None:
                click.echo(_dump_outputs(e.outputs.model_dump(), partial=True))
            _abort("Provisioning failed", e)
        except ProvisioningError as e:
            _abort("Provisioning error", e)
        except OSNetBuilderError as e:
            _abort("An unexpected application error occurred", e)
    return wrapper


def _dump_outputs(outputs: dict, partial: bool = False) -> str:
    document = {"partial": True, **outputs} if partial else outputs
    return yaml.dump(document, default_flow_style=False, sort_keys=False)


@handle_errors
def do_plan(config_file: str):
    """Execute plan command"""
    config = Config(config_file)
    graph = build_graph(config.spec)
    mapper = Mapper(graph)
    mapper.log_plan()
    for row in mapper.plan():
        deps = ", ".join(row["depends_on"]) or "-"
        click.echo(f"{row['step']:>3}. {row['kind']:<16} {row['name']:<32} <- {deps}  (parent: {row['parent']})")


@handle_errors
def do_graph(config_file: str, output: str):
    """Execute graph command"""
    config = Config(config_file)
    graph = build_graph(config.spec)
    GraphGenerator(graph).generate_dot_file(output)


@handle_errors
def do_apply(config_file: str, latency: float, fail: tuple, output: str, graph_output: str):
    """Execute apply command against the in-memory engine"""
    config = Config(config_file)
    engine = MemoryEngine(latency=latency, fail=fail)
    topology = NetworkTopology.from_config(config, engine)
    try:
        outputs = asyncio.run(topology.provision())
    finally:
        if graph_output:
            GraphGenerator(topology.graph, states=topology.state.states).generate_dot_file(graph_output)

    document = _dump_outputs(outputs.model_dump())
    if output:
        Path(output).write_text(document, encoding='utf-8')
        logging.info(f"Outputs written to '{output}'")
    else:
        click.echo(document)


@click.group()
@click.version_option(version=__version__, prog_name='osnb')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('-l', '--log-levels', help='Per-module log levels, e.g. "graph=DEBUG,asm=INFO"')
@click.option('-f', '--log-file', help='Path to log file')
@click.pass_context
def cli(ctx, debug, log_levels, log_file):
    """OpenStack network topology builder

    \b
    Commands:
      osnb plan config.yml              Show declarations in build order
      osnb graph config.yml -o g.dot    Write the declaration graph as DOT
      osnb apply config.yml             Provision against the in-memory engine
    """
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    setup_logging(debug, log_levels, log_file)


@cli.command()
@click.argument('config_file', shell_complete=complete_config_files)
@click.pass_context
def plan(ctx, config_file):
    """Show every declaration in submission order"""
    do_plan(config_file)


@cli.command()
@click.argument('config_file', shell_complete=complete_config_files)
@click.option('-o', '--output', required=True, help='Path of the DOT file to write')
@click.pass_context
def graph(ctx, config_file, output):
    """Write the declaration graph as a Graphviz DOT file"""
    do_graph(config_file, output)


@cli.command()
@click.argument('config_file', shell_complete=complete_config_files)
@click.option('--latency', type=float, default=0.0, show_default=True, help='Simulated seconds per declaration')
@click.option('--fail', multiple=True, help='Resource name the engine should reject (repeatable)')
@click.option('-o', '--output', help='Write outputs YAML to this file instead of stdout')
@click.option('-g', '--graph', 'graph_output', help='Also write the annotated DOT graph')
@click.pass_context
def apply(ctx, config_file, latency, fail, output, graph_output):
    """Provision the topology against the in-memory engine

    \b
    Examples:
      osnb apply demo.yml
      osnb apply demo.yml --latency 0.1 --fail demo-subnet-a
    """
    do_apply(config_file, latency, fail, output, graph_output)
