"""Runtime-style tests for the real Textual app class."""

from __future__ import annotations

import asyncio
from copy import deepcopy
import logging
from pathlib import Path
import tempfile
import unittest

from openrouter_chat.config import DEFAULT_CONFIG, DEFAULT_MODEL, DEFAULT_MODELS
from openrouter_chat.controller import CREDENTIAL_REQUIRED
from openrouter_chat.models import DispatchResult, MessageRole

try:
    from textual.events import Paste
    from textual.widgets import Button, Input, Select

    from openrouter_chat.app import OpenRouterChatApp
    from openrouter_chat.widgets.attachment_list import AttachmentList
    from openrouter_chat.widgets.message import MessageBubble
except ModuleNotFoundError:
    OpenRouterChatApp = None  # type: ignore[assignment,misc]


class _RuntimeFakeDispatcher:
    def __init__(self, result: DispatchResult | None = None) -> None:
        self.result = result or DispatchResult.success("Hello from the model")
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, str, str]] = []
        self.closed = False

    async def send_message(self, message: str, model: str, credential: str) -> DispatchResult:
        self.calls.append((message, model, credential))
        if self.gate is not None:
            await self.gate.wait()
        return self.result

    async def aclose(self) -> None:
        self.closed = True


async def _settle(app: OpenRouterChatApp, pilot) -> None:
    """Wait for background submit/attach tasks and the renders they trigger."""
    for _ in range(200):
        await pilot.pause(0.01)
        if app._tasks.pending == 0:
            break
    await pilot.pause()


@unittest.skipIf(OpenRouterChatApp is None, "textual is not installed")
class AppRuntimeTests(unittest.IsolatedAsyncioTestCase):
    """Exercise the real app class against a fake dispatcher."""

    def setUp(self) -> None:
        root = logging.getLogger()
        self._original_level = root.level
        self._original_handlers = list(root.handlers)

    def tearDown(self) -> None:
        root = logging.getLogger()
        root.setLevel(self._original_level)
        root.handlers.clear()
        root.handlers.extend(self._original_handlers)

    def _build_app(
        self, result: DispatchResult | None = None, **attachment_overrides
    ) -> OpenRouterChatApp:
        config = deepcopy(DEFAULT_CONFIG)
        config["attachments"].update(attachment_overrides)
        self.dispatcher = _RuntimeFakeDispatcher(result)
        return OpenRouterChatApp(config=config, dispatcher=self.dispatcher)

    async def test_initial_state(self) -> None:
        app = self._build_app()
        async with app.run_test():
            self.assertEqual(app.title, "OpenRouter Chat Bot")
            self.assertEqual(app.sub_title, f"Model: {DEFAULT_MODEL}")
            self.assertEqual(app.query_one("#model_select", Select).value, DEFAULT_MODEL)
            self.assertEqual(len(app.query(MessageBubble)), 0)

    async def test_enter_sends_and_renders_user_and_bot_entries(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            app.query_one("#api_key_input", Input).value = "sk-test"
            await pilot.pause()
            message_input = app.query_one("#message_input", Input)
            message_input.focus()
            message_input.value = "hello"
            await pilot.pause()

            await pilot.press("enter")
            await _settle(app, pilot)

            self.assertEqual(self.dispatcher.calls, [("hello", DEFAULT_MODEL, "sk-test")])
            bubbles = list(app.query(MessageBubble))
            self.assertEqual(
                [bubble.role for bubble in bubbles], [MessageRole.USER, MessageRole.ASSISTANT]
            )
            self.assertEqual(bubbles[1].message.content, "Hello from the model")
            self.assertEqual(message_input.value, "")
            self.assertEqual(app.controller.draft, "")
            self.assertEqual(app.sub_title, f"Model: {DEFAULT_MODEL}")

    async def test_send_key_binding_submits(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            app.controller.set_credential("sk-test")
            app.query_one("#message_input", Input).value = "via shortcut"
            await pilot.pause()

            await pilot.press("ctrl+s")
            await _settle(app, pilot)

            self.assertEqual(self.dispatcher.calls, [("via shortcut", DEFAULT_MODEL, "sk-test")])

    async def test_send_button_submits(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            app.controller.set_credential("sk-test")
            app.query_one("#message_input", Input).value = "via button"
            await pilot.pause()

            app.query_one("#send_button", Button).press()
            await _settle(app, pilot)

            self.assertEqual(self.dispatcher.calls, [("via button", DEFAULT_MODEL, "sk-test")])

    async def test_rapid_typing_is_not_reverted_by_queued_snapshots(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            message_input = app.query_one("#message_input", Input)
            message_input.value = "a"
            message_input.value = "ab"
            message_input.value = "abc"
            for _ in range(20):
                await pilot.pause()

            self.assertEqual(message_input.value, "abc")
            self.assertEqual(app.controller.draft, "abc")

    async def test_failed_dispatch_renders_error_entry(self) -> None:
        app = self._build_app(DispatchResult.failure("API Error: invalid key"))
        async with app.run_test() as pilot:
            app.controller.set_credential("sk-bad")
            app.controller.set_draft("hi")
            app.action_send_message()
            await _settle(app, pilot)

            bubbles = list(app.query(MessageBubble))
            self.assertEqual(bubbles[-1].role, MessageRole.ERROR)
            self.assertEqual(bubbles[-1].message.content, "Error: API Error: invalid key")

    async def test_missing_credential_shows_error_without_dispatch(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            message_input = app.query_one("#message_input", Input)
            message_input.value = "hello"
            await pilot.pause()
            app.action_send_message()
            await _settle(app, pilot)

            self.assertEqual(self.dispatcher.calls, [])
            bubbles = list(app.query(MessageBubble))
            self.assertEqual(len(bubbles), 1)
            self.assertEqual(bubbles[0].role, MessageRole.ERROR)
            self.assertEqual(bubbles[0].message.content, CREDENTIAL_REQUIRED)
            self.assertEqual(message_input.value, "hello")

    async def test_controls_disabled_while_in_flight(self) -> None:
        app = self._build_app()
        self.dispatcher.gate = asyncio.Event()
        async with app.run_test() as pilot:
            app.controller.set_credential("sk-test")
            app.controller.set_draft("slow question")
            task = app._tasks.spawn(app.controller.submit(), label="submit")
            await pilot.pause()
            await pilot.pause()

            send_button = app.query_one("#send_button", Button)
            self.assertTrue(send_button.disabled)
            self.assertEqual(app.sub_title, "Waiting for response...")

            self.dispatcher.gate.set()
            await task
            await pilot.pause()

            self.assertFalse(send_button.disabled)
            self.assertEqual(app.sub_title, f"Model: {DEFAULT_MODEL}")
            self.assertEqual(len(self.dispatcher.calls), 1)

    async def test_model_selection_updates_controller(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            app.query_one("#model_select", Select).value = DEFAULT_MODELS[2]
            await pilot.pause()
            self.assertEqual(app.controller.model, DEFAULT_MODELS[2])
            self.assertEqual(app.sub_title, f"Model: {DEFAULT_MODELS[2]}")

    async def test_attach_path_reports_read_failure(self) -> None:
        app = self._build_app()
        async with app.run_test():
            await app.attach_path("/definitely/not/here.txt")
            self.assertIn("File not found", app.sub_title)
            self.assertEqual(app.controller.pending_attachments, ())
            self.assertEqual(len(app.query(MessageBubble)), 0)

    async def test_attach_path_queues_attachment(self) -> None:
        app = self._build_app()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "notes.txt"
            path.write_text("remember this", encoding="utf-8")
            async with app.run_test() as pilot:
                await app.attach_path(str(path))
                await pilot.pause()
                self.assertEqual(app.sub_title, "Attached: notes.txt (1 pending)")
                listing = app.query_one("#pending_attachments", AttachmentList)
                self.assertTrue(listing.display)
                self.assertEqual(listing.option_count, 1)

    async def test_paste_of_file_paths_into_input_attaches(self) -> None:
        app = self._build_app()
        with tempfile.TemporaryDirectory() as tmp:
            first = Path(tmp) / "a.txt"
            second = Path(tmp) / "b.json"
            first.write_text("alpha", encoding="utf-8")
            second.write_text("{}", encoding="utf-8")
            async with app.run_test() as pilot:
                message_input = app.query_one("#message_input", Input)
                message_input.focus()
                await pilot.pause()

                message_input.post_message(Paste(f"'{first}' file://{second}"))
                await _settle(app, pilot)

                names = sorted(item.name for item in app.controller.pending_attachments)
                self.assertEqual(names, ["a.txt", "b.json"])
                self.assertEqual(message_input.value, "")
                self.assertEqual(app.controller.draft, "")

    async def test_paste_of_plain_text_goes_into_input(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            message_input = app.query_one("#message_input", Input)
            message_input.focus()
            await pilot.pause()

            message_input.post_message(Paste("just some words"))
            await _settle(app, pilot)

            self.assertEqual(message_input.value, "just some words")
            self.assertEqual(app.controller.pending_attachments, ())

    async def test_attach_disabled_by_config(self) -> None:
        app = self._build_app(enabled=False)
        async with app.run_test():
            app.action_attach_file()
            self.assertIn("disabled", app.sub_title)
            self.assertFalse(app.query_one("#attach_button", Button).display)

    async def test_unmount_closes_dispatcher(self) -> None:
        app = self._build_app()
        async with app.run_test():
            pass
        self.assertTrue(self.dispatcher.closed)


if __name__ == "__main__":
    unittest.main()
