import logging

import pytest

from osnetbuilder.utils.logger import (
    normalize_module_name,
    parse_module_levels,
    resolve_module_levels,
    setup_logger,
)


class TestNormalizeModuleName:

    @pytest.mark.parametrize("name, expected", [
        ("graph", "osnetbuilder.builder.graph"),
        ("asm", "osnetbuilder.builder.assemble"),
        ("rty", "osnetbuilder.registry"),
        ("builder.map", "osnetbuilder.builder.map"),
        ("engines.*", "osnetbuilder.engines"),
        ("osnetbuilder.topology", "osnetbuilder.topology"),
        ("asyncio", "asyncio"),
    ])
    def test_aliases_and_prefixes(self, name, expected):
        assert normalize_module_name(name) == expected


class TestParseModuleLevels:

    def test_pairs_are_parsed(self):
        assert parse_module_levels("graph=debug, asm=INFO") == {"graph": "DEBUG", "asm": "INFO"}

    def test_malformed_pairs_skipped(self):
        assert parse_module_levels("graph,asm=warning,") == {"asm": "WARNING"}

    @pytest.mark.parametrize("spec", [None, ""])
    def test_empty(self, spec):
        assert parse_module_levels(spec) == {}


class TestResolveModuleLevels:

    def test_defaults_quiet_per_declaration_loggers(self, monkeypatch):
        monkeypatch.delenv("OSNB_LOG_LEVELS", raising=False)
        levels = resolve_module_levels()
        assert levels["osnetbuilder.engines.memory"] == "INFO"
        assert levels["osnetbuilder.naming"] == "INFO"
        assert "osnetbuilder.builder.assemble" not in levels

    def test_env_overrides_defaults_and_arguments_override_env(self, monkeypatch):
        monkeypatch.setenv("OSNB_LOG_LEVELS", "mem=DEBUG,asm=WARNING")
        levels = resolve_module_levels({"asm": "error"})
        assert levels["osnetbuilder.engines.memory"] == "DEBUG"
        assert levels["osnetbuilder.builder.assemble"] == "ERROR"


@pytest.fixture
def restore_loggers():
    root = logging.getLogger()
    handlers = list(root.handlers)
    names = ["osnetbuilder.engines.memory", "osnetbuilder.naming", "osnetbuilder.registry", "osnetbuilder.builder.graph"]
    levels = {name: logging.getLogger(name).level for name in names}
    root_level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(root_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


class TestSetupLogger:

    def test_debug_keeps_engine_chatter_at_info(self, monkeypatch, restore_loggers):
        monkeypatch.delenv("OSNB_LOG_LEVELS", raising=False)
        root = setup_logger(debug=True)
        assert root.level == logging.DEBUG
        assert logging.getLogger("osnetbuilder.engines.memory").level == logging.INFO

    def test_explicit_levels_applied(self, monkeypatch, restore_loggers):
        monkeypatch.delenv("OSNB_LOG_LEVELS", raising=False)
        setup_logger(module_levels={"graph": "WARNING"})
        assert logging.getLogger("osnetbuilder.builder.graph").level == logging.WARNING

    def test_unknown_level_is_ignored(self, monkeypatch, restore_loggers, caplog):
        monkeypatch.delenv("OSNB_LOG_LEVELS", raising=False)
        target = logging.getLogger("osnetbuilder.builder.graph")
        previous = target.level
        with caplog.at_level(logging.WARNING):
            setup_logger(module_levels={"graph": "LOUD"})
        assert target.level == previous
        assert "Ignoring unknown log level 'LOUD'" in caplog.text
