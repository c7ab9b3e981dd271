import logging
import sys
import os

import colorlog

from .. import constants

_LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


def setup_logger(debug: bool = False, module_levels: dict | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Configures the root logger for the builder.

    Module levels are layered: ``constants.DEFAULT_LOG_LEVELS`` first, then
    ``OSNB_LOG_LEVELS`` from the environment, then ``module_levels``. Later
    layers win per module.

    Args:
        debug: Enable debug logging level
        module_levels: Per-module log levels, keys may be aliases like ``asm``
        log_file: Optional path to log file, written without colors
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    # Handlers are installed once per process; levels may change on every call
    if not root.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_console_formatter(sys.stderr.isatty() and not os.environ.get("NO_COLOR")))
        root.addHandler(console_handler)

        if log_file:
            try:
                file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
            except OSError as e:
                logging.error(f"Failed to create log file handler for '{log_file}': {e}")
            else:
                file_handler.setFormatter(logging.Formatter(
                    '%(asctime)s [%(levelname).4s] %(name)s: %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S'
                ))
                root.addHandler(file_handler)
                logging.info(f"Logging to file: {log_file}")

    _apply_module_levels(resolve_module_levels(module_levels))
    return root


def _console_formatter(use_colors: bool) -> logging.Formatter:
    if not use_colors:
        return logging.Formatter('[%(levelname).4s] %(name)s: %(message)s')
    return colorlog.ColoredFormatter(
        '%(log_color)s[%(levelname).4s]%(reset)s %(cyan)s%(name)s%(reset)s: %(message)s',
        log_colors=_LOG_COLORS,
        reset=True,
        style='%'
    )


def parse_module_levels(spec: str | None) -> dict:
    """Parse "name=LEVEL,name=LEVEL" into a mapping, skipping malformed pairs."""
    levels = {}
    if not spec:
        return levels
    for pair in spec.split(','):
        pair = pair.strip()
        if not pair or '=' not in pair:
            continue
        name, lvl = pair.split('=', 1)
        levels[name.strip()] = lvl.strip().upper()
    return levels


def resolve_module_levels(module_levels: dict | None = None) -> dict:
    """Merge default, environment and explicit levels into full logger names."""
    resolved = {}
    layers = (
        constants.DEFAULT_LOG_LEVELS,
        parse_module_levels(os.environ.get(constants.LOG_LEVELS_ENV)),
        module_levels or {},
    )
    for layer in layers:
        for name, lvl in layer.items():
            resolved[normalize_module_name(name)] = lvl.upper()
    return resolved


def _apply_module_levels(module_levels: dict):
    for name, lvl_str in module_levels.items():
        lvl = logging.getLevelName(lvl_str)
        if not isinstance(lvl, int):
            logging.warning(f"Ignoring unknown log level '{lvl_str}' for '{name}'")
            continue
        logging.getLogger(name).setLevel(lvl)


def normalize_module_name(name: str) -> str:
    """
    Expand an alias (``asm``), strip a trailing ``.*`` and prefix known top
    modules with ``osnetbuilder.``.
    """
    if name in constants.LOG_ALIAS_MAP:
        return constants.LOG_ALIAS_MAP[name]
    if name.endswith('.*'):
        name = name[:-2]
    if not name.startswith('osnetbuilder.'):
        first = name.split('.', 1)[0]
        if first in constants.KNOWN_TOP_MODULES:
            name = f'osnetbuilder.{name}'
    return name
