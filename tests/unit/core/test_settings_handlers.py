"""Tests for configuration, settings and editor handlers."""

import logging
from unittest.mock import AsyncMock

import pytest

from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.handlers import config, editor, settings
from assistant_gateway.core.models import Diagnostic
from assistant_gateway.core.schemas import (
    ConfigurationRequest,
    CustomInstructionsRequest,
    DebugOptions,
    DebugOptionsRequest,
    EditorDiffRequest,
    ResetOptions,
    ResetStateRequest,
)
from assistant_gateway.core.session import DEFAULT_CONFIGURATION, DEFAULT_MODELS, InMemorySession


@pytest.fixture
def session():
    return InMemorySession()


class TestConfiguration:
    @pytest.mark.asyncio
    async def test_get(self, session):
        env = await config.get_configuration(session)
        assert env.data["current"] == DEFAULT_CONFIGURATION
        assert [m["id"] for m in env.data["availableModels"]] == [m["id"] for m in DEFAULT_MODELS]

    @pytest.mark.asyncio
    async def test_partial_update_preserves_other_fields(self, session):
        env = await config.update_configuration(session, ConfigurationRequest(api_key="x"))

        assert env.ok
        current = (await config.get_configuration(session)).data["current"]
        assert current["apiKey"] == "x"
        assert current["apiProvider"] == DEFAULT_CONFIGURATION["apiProvider"]

    @pytest.mark.asyncio
    async def test_unknown_keys_pass_through(self, session):
        request = ConfigurationRequest.model_validate({"mistralApiKey": "m"})
        await config.update_configuration(session, request)
        assert (await session.get_configuration())["mistralApiKey"] == "m"


class TestCustomInstructions:
    @pytest.mark.asyncio
    async def test_round_trip(self, session):
        await settings.set_custom_instructions(session, CustomInstructionsRequest(value="v"))
        env = await settings.get_custom_instructions(session)
        assert env.data == {"instructions": "v"}

    @pytest.mark.asyncio
    async def test_unset_instructions_are_empty(self):
        facade = AsyncMock(spec=SessionFacade)
        facade.get_custom_instructions.return_value = None
        env = await settings.get_custom_instructions(facade)
        assert env.data == {"instructions": ""}


class TestReset:
    @pytest.mark.asyncio
    async def test_all_implies_every_flag(self):
        facade = AsyncMock(spec=SessionFacade)
        env = await settings.reset_state(
            facade, ResetStateRequest(reset_options=ResetOptions(all_=True))
        )

        assert env.data == {
            "message": "State reset successful",
            "reset": ["history", "configuration", "customInstructions"],
        }
        facade.clear_history.assert_awaited_once()
        facade.reset_configuration.assert_awaited_once()
        facade.set_custom_instructions.assert_awaited_once_with("")

    @pytest.mark.asyncio
    async def test_flags_are_additive(self):
        facade = AsyncMock(spec=SessionFacade)
        request = ResetStateRequest.model_validate(
            {"resetOptions": {"history": True, "customInstructions": True}}
        )
        env = await settings.reset_state(facade, request)

        assert env.data["reset"] == ["history", "customInstructions"]
        facade.clear_history.assert_awaited_once()
        facade.reset_configuration.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reset_against_session(self, session):
        await session.start_new_task("old")
        await session.cancel_task()
        await session.set_custom_instructions("keep me?")

        request = ResetStateRequest.model_validate({"resetOptions": {"all": True}})
        await settings.reset_state(session, request)

        assert await session.get_history() == []
        assert await session.get_configuration() == {}
        assert await session.get_custom_instructions() == ""


class TestDebugOptions:
    @pytest.mark.asyncio
    async def test_forwarded_and_log_level_applied(self, session):
        package_logger = logging.getLogger("assistant_gateway")
        previous = package_logger.level
        try:
            env = await settings.update_debug_options(
                session, DebugOptionsRequest(options=DebugOptions(log_level="warn", metrics=True))
            )
            assert env.ok
            assert session.debug_options == {"logLevel": "warn", "metrics": True}
            assert package_logger.level == logging.WARNING
        finally:
            package_logger.setLevel(previous)

    @pytest.mark.asyncio
    async def test_without_log_level(self):
        facade = AsyncMock(spec=SessionFacade)
        env = await settings.update_debug_options(
            facade, DebugOptionsRequest(options=DebugOptions(api_trace=False))
        )
        assert env.data["options"] == {"apiTrace": False}
        facade.update_debug_options.assert_awaited_once_with({"apiTrace": False})


class TestEditor:
    def test_line_diff(self):
        diff, changes = editor.line_diff("a\nb\nc", "a\nB\nc\nd")
        assert diff.splitlines() == [" a", "-b", "+B", " c", "+d"]
        assert changes == 3

    def test_identical_texts(self):
        diff, changes = editor.line_diff("same\n", "same\n")
        assert diff == " same"
        assert changes == 0

    @pytest.mark.asyncio
    async def test_get_diff(self):
        env = await editor.get_diff(EditorDiffRequest(original="x", modified="y", path="a.py"))
        assert env.data == {"diff": "-x\n+y", "changes": 2, "path": "a.py"}

    @pytest.mark.asyncio
    async def test_diagnostics_filtering(self, session):
        session.set_diagnostics(
            [
                Diagnostic(path="/src/app.py", line=3, message="unused import", severity="warning"),
                Diagnostic(path="/src/app.py", line=9, message="undefined name", severity="error"),
                Diagnostic(path="/tests/test_app.py", line=1, message="typo", severity="error"),
            ]
        )

        env = await editor.get_diagnostics(session, path="src/", severity="error")

        assert env.data == {
            "diagnostics": [
                {
                    "path": "/src/app.py",
                    "line": 9,
                    "message": "undefined name",
                    "severity": "error",
                }
            ]
        }

    @pytest.mark.asyncio
    async def test_diagnostics_unfiltered(self, session):
        session.set_diagnostics(
            [Diagnostic(path="/a.py", line=1, message="m", severity="info", source="lint")]
        )
        env = await editor.get_diagnostics(session)
        assert env.data["diagnostics"][0]["source"] == "lint"
