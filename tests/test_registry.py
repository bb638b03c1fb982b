"""Tests for registry construction and handler discovery."""

import types
from unittest.mock import MagicMock, patch

import pytest

from command_framework.commands.base import (
    CommandContainer,
    command,
    discover_commands,
    get_command_tag,
)
from command_framework.config import Config
from command_framework.exceptions import (
    ConfigurationError,
    DuplicateCommandError,
    HandlerSignatureError,
    InvalidCommandNameError,
    RegistryError,
)
from command_framework.models import CaseSensitivity, DispatchResult
from command_framework.parser import CommandParser
from command_framework.registry import (
    CommandRegistry,
    RegistryBuilder,
    build_parser,
    validate_handler,
)


def _ok(user_input, parser):
    return True


def _make_module(name, source):
    """Create a throwaway module whose functions belong to it."""
    module = types.ModuleType(name)
    exec(
        "from command_framework.commands.base import command\n"
        "from command_framework.models import CaseSensitivity\n" + source,
        module.__dict__,
    )
    return module


# -------------------------------------------------------------------
# RegistryBuilder.register
# -------------------------------------------------------------------

class TestRegister:
    """Tests for explicit registration."""

    def test_key_is_lowercase_and_name_keeps_casing(self):
        registry = RegistryBuilder().register("MixedCase", "desc", _ok).build()
        assert list(registry) == ["mixedcase"]
        assert registry["mixedcase"].name == "MixedCase"
        assert registry["mixedcase"].key == "mixedcase"

    def test_default_case_sensitivity_is_invariant(self):
        registry = RegistryBuilder().register("ping", "", _ok).build()
        assert registry["ping"].case_sensitivity == CaseSensitivity.CASE_INVARIANT

    def test_register_chains(self):
        registry = (
            RegistryBuilder()
            .register("a", "", _ok)
            .register("b", "", _ok, case_sensitivity=CaseSensitivity.CASE_SENSITIVE)
            .build()
        )
        assert len(registry) == 2
        assert registry["b"].is_case_sensitive

    def test_handler_is_stored_by_reference(self):
        registry = RegistryBuilder().register("ping", "", _ok).build()
        assert registry["ping"].handler is _ok

    @pytest.mark.parametrize("first, second", [("help", "help"), ("help", "HELP"), ("Ping", "pInG")])
    def test_duplicate_key_rejected(self, first, second):
        builder = RegistryBuilder().register(first, "first", _ok)
        with pytest.raises(DuplicateCommandError) as exc_info:
            builder.register(second, "second", _ok)
        err = exc_info.value
        assert err.key == first.lower()
        assert err.existing_name == first
        assert err.command_name == second
        assert first.lower() in str(err)

    def test_duplicate_does_not_overwrite(self):
        builder = RegistryBuilder().register("help", "first", _ok)
        with pytest.raises(DuplicateCommandError):
            builder.register("Help", "second", _ok)
        assert builder.build()["help"].description == "first"

    @pytest.mark.parametrize("name", ["", " ", "two words", "tab\tname", " lead", "trail\n"])
    def test_invalid_names_rejected(self, name):
        with pytest.raises(InvalidCommandNameError):
            RegistryBuilder().register(name, "", _ok)

    def test_non_callable_handler_rejected(self):
        with pytest.raises(HandlerSignatureError):
            RegistryBuilder().register("x", "", "not a function")

    def test_errors_share_registry_base(self):
        with pytest.raises(RegistryError):
            RegistryBuilder().register("", "", _ok)


# -------------------------------------------------------------------
# Handler signature validation
# -------------------------------------------------------------------

class TestValidateHandler:
    """Tests for validate_handler."""

    def test_accepts_two_positional_parameters(self):
        validate_handler("x", _ok)

    def test_accepts_varargs(self):
        validate_handler("x", lambda *args: True)

    def test_accepts_extra_defaulted_parameters(self):
        validate_handler("x", lambda user_input, parser, verbose=False: True)

    def test_accepts_bool_annotation(self):
        def handler(user_input: str, parser) -> bool:
            return True
        validate_handler("x", handler)

    def test_rejects_too_few_parameters(self):
        with pytest.raises(HandlerSignatureError) as exc_info:
            validate_handler("x", lambda user_input: True)
        assert exc_info.value.command_name == "x"

    def test_rejects_required_third_parameter(self):
        with pytest.raises(HandlerSignatureError):
            validate_handler("x", lambda user_input, parser, extra: True)

    def test_rejects_keyword_only_parameters(self):
        def handler(*, user_input, parser):
            return True
        with pytest.raises(HandlerSignatureError):
            validate_handler("x", handler)

    def test_rejects_non_bool_return_annotation(self):
        def handler(user_input, parser) -> str:
            return "done"
        with pytest.raises(HandlerSignatureError) as exc_info:
            validate_handler("x", handler)
        assert "bool" in str(exc_info.value)
        assert exc_info.value.handler_name.endswith("handler")


# -------------------------------------------------------------------
# Container discovery
# -------------------------------------------------------------------

class TestDiscovery:
    """Tests for @command tagging and discover_commands."""

    def test_tag_survives_staticmethod_in_either_order(self):
        class Container:
            @staticmethod
            @command("below")
            def below(user_input, parser):
                return True

            @command("above")
            @staticmethod
            def above(user_input, parser):
                return True

        names = [tag.name for tag, _ in discover_commands(Container)]
        assert names == ["below", "above"]

    def test_untagged_members_ignored(self):
        class Container:
            @staticmethod
            def helper(user_input, parser):
                return True

            value = 3

        assert discover_commands(Container) == []

    def test_class_container_rejects_instance_methods(self):
        class Container:
            @command("needs_self")
            def needs_self(self, user_input, parser):
                return True

        with pytest.raises(HandlerSignatureError) as exc_info:
            discover_commands(Container)
        assert exc_info.value.command_name == "needs_self"
        assert "needs_self" in exc_info.value.handler_name

    def test_class_container_accepts_classmethods(self):
        class Container:
            seen = []

            @classmethod
            @command("cls")
            def cls_command(cls, user_input, parser):
                cls.seen.append(user_input)
                return True

        parser = RegistryBuilder().register_container(Container).build_parser(prefix="!")
        assert parser.interpret("!cls") == DispatchResult.COMMAND_SUCCEEDED
        assert Container.seen == ["!cls"]

    def test_instance_container_binds_methods(self):
        class Counter:
            def __init__(self):
                self.count = 0

            @command("bump", "Increment the counter")
            def bump(self, user_input, parser):
                self.count += 1
                return True

        counter = Counter()
        parser = RegistryBuilder().register_container(counter).build_parser(prefix="!")
        parser.interpret("!bump")
        parser.interpret("!BUMP")
        assert counter.count == 2

    def test_subclass_override_without_tag_hides_command(self):
        class Base:
            @staticmethod
            @command("hidden")
            def hidden(user_input, parser):
                return True

        class Child(Base):
            hidden = None

        assert discover_commands(Base) != []
        assert discover_commands(Child) == []

    def test_subclass_inherits_tagged_commands(self):
        class Base:
            @staticmethod
            @command("base")
            def base(user_input, parser):
                return True

        class Child(Base):
            @staticmethod
            @command("child")
            def child(user_input, parser):
                return True

        names = sorted(tag.name for tag, _ in discover_commands(Child))
        assert names == ["base", "child"]

    def test_module_container(self):
        module = _make_module(
            "sample_commands",
            "@command('greet', 'Say hello')\n"
            "def greet(user_input, parser):\n"
            "    return True\n"
            "\n"
            "@command('Exact', case_sensitivity=CaseSensitivity.CASE_SENSITIVE)\n"
            "def exact(user_input, parser):\n"
            "    return True\n",
        )
        parser = RegistryBuilder().register_container(module).build_parser(prefix="!")
        assert parser.interpret("!GREET") == DispatchResult.COMMAND_SUCCEEDED
        assert parser.interpret("!Exact") == DispatchResult.COMMAND_SUCCEEDED
        assert parser.interpret("!exact") == DispatchResult.COMMAND_NOT_FOUND

    def test_module_container_skips_imported_handlers(self):
        module = _make_module("reexports", "")
        module.borrowed = _tagged_elsewhere
        assert discover_commands(module) == []

    def test_get_command_tag_on_plain_objects(self):
        assert get_command_tag(42) is None
        assert get_command_tag(MagicMock()) is None

    def test_command_container_get_commands_can_be_extended(self):
        class Dynamic(CommandContainer):
            def get_commands(self):
                found = super().get_commands()
                found.append((_tagged_elsewhere_tag(), _ok))
                return found

            @command("static_one")
            def static_one(self, user_input, parser):
                return True

        registry = RegistryBuilder().register_container(Dynamic()).build()
        assert sorted(registry) == ["elsewhere", "static_one"]


@command("elsewhere")
def _tagged_elsewhere(user_input, parser):
    return True


def _tagged_elsewhere_tag():
    return get_command_tag(_tagged_elsewhere)


# -------------------------------------------------------------------
# build_parser / CommandRegistry
# -------------------------------------------------------------------

class TestBuildParser:
    """Tests for the one-call builder."""

    def test_containers_with_colliding_names_fail(self):
        class First:
            @staticmethod
            @command("help")
            def help_a(user_input, parser):
                return True

        class Second:
            @staticmethod
            @command("Help")
            def help_b(user_input, parser):
                return True

        with pytest.raises(DuplicateCommandError):
            build_parser(First, Second, prefix="!")

    def test_same_container_colliding_names_fail(self):
        class Container:
            @staticmethod
            @command("help")
            def help_a(user_input, parser):
                return True

            @staticmethod
            @command("HELP")
            def help_b(user_input, parser):
                return True

        with pytest.raises(DuplicateCommandError):
            build_parser(Container, prefix="!")

    def test_default_prefix_ignores_environment_and_settings(self, tmp_path, monkeypatch):
        """Without a config, building never reads settings or env vars."""
        (tmp_path / "settings.yaml").write_text("prefix: 5\n")
        monkeypatch.setenv("COMMAND_FRAMEWORK_CONFIG_DIR", str(tmp_path))
        monkeypatch.setenv("COMMAND_PREFIX", "$")

        with patch("command_framework.config.get_config") as mock_cfg:
            parser = RegistryBuilder().register("test", "", _ok).build_parser()
            module_parser = build_parser()
        mock_cfg.assert_not_called()

        assert isinstance(parser, CommandParser)
        assert parser.prefix == "!"
        assert module_parser.prefix == "!"
        assert parser.interpret("!test") == DispatchResult.COMMAND_SUCCEEDED

    def test_config_prefix_is_opt_in(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COMMAND_PREFIX", "")
        monkeypatch.delenv("COMMAND_PREFIX")
        (tmp_path / "settings.yaml").write_text("prefix: '$'\n")
        parser = build_parser(prefix="!", config=Config(config_dir=tmp_path))
        assert parser.prefix == "$"

    def test_config_with_non_string_prefix_fails_build(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COMMAND_PREFIX", "")
        monkeypatch.delenv("COMMAND_PREFIX")
        (tmp_path / "settings.yaml").write_text("prefix: 5\n")
        builder = RegistryBuilder().register("test", "", _ok)
        with pytest.raises(ConfigurationError) as exc_info:
            builder.build_parser(config=Config(config_dir=tmp_path))
        assert exc_info.value.setting_name == "prefix"

    def test_kwargs_reach_parser(self):
        sink = MagicMock()
        parser = build_parser(prefix="!", send_message=sink)
        parser.send_message("hi")
        sink.assert_called_once_with("hi")

    def test_registry_is_read_only(self):
        registry = RegistryBuilder().register("ping", "", _ok).build()
        assert isinstance(registry, CommandRegistry)
        with pytest.raises(TypeError):
            registry["pong"] = registry["ping"]
        assert not hasattr(registry, "register")

    def test_registry_not_affected_by_later_registrations(self):
        builder = RegistryBuilder().register("ping", "", _ok)
        registry = builder.build()
        builder.register("pong", "", _ok)
        assert "pong" not in registry
        assert len(registry) == 1

    def test_command_data_is_frozen(self):
        registry = RegistryBuilder().register("ping", "", _ok).build()
        with pytest.raises(Exception):
            registry["ping"].name = "PING"

    def test_command_names(self):
        registry = RegistryBuilder().register("Ping", "", _ok).register("pong", "", _ok).build()
        assert registry.command_names == frozenset({"Ping", "pong"})
