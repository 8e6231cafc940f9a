"""
HyprAgent terminal front-end.
"""

import sys
from typing import Dict, Optional
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding

from hypragent.config import Settings, load_settings
from hypragent.core.agent import Agent, build_agent
from hypragent.core.errors import HyprAgentError
from hypragent.log import setup_logging
from hypragent.models import Turn
from hypragent.screens import StartupScreen
from hypragent.widgets import InputArea, ChatLog


class ChatApp(App):
    BINDINGS = [Binding("ctrl+c", "quit", "Quit", priority=True)]

    def __init__(self, settings: Settings, agent: Agent):
        """Initialize the chat application with default state."""
        super().__init__()
        self.settings = settings
        self.agent = agent
        self.orchestrator = agent.orchestrator

        self.next_turn_id = 1
        self.turns: Dict[int, Turn] = {}
        self.active_turn_id: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield ChatLog(id="chat_log")
        yield InputArea(id="input_text", placeholder="Ask for a Hyprland change, /reset to start over")

    async def on_mount(self) -> None:
        self._startup_flow()

    @work(exclusive=True, group="startup")
    async def _startup_flow(self) -> None:
        """
        Ask for confirmation, greet, then start the status pump.
        """
        backend = self.agent.backend
        confirmed = await self.push_screen_wait(StartupScreen(
            str(self.agent.gate.config_root),
            backend.type.value,
            self.agent.detected,
            self.settings.llm.provider,
        ))
        if not confirmed:
            self.exit()
            return

        chat_log = self.query_one("#chat_log", ChatLog)
        chat_log.write_agent("Welcome! I'm ready to help you configure Hyprland.")
        chat_log.write_status(f"{backend.type.value} layout, root {self.agent.gate.config_root}")
        self.set_focus(self.query_one('#input_text', InputArea))

        self._pump()

    async def on_input_area_submit(self, message: InputArea.Submit) -> None:
        text = message.value.strip()
        chat_log = self.query_one("#chat_log", ChatLog)

        if text == "/reset":
            self.orchestrator.reset()
            chat_log.clear()
            chat_log.write_status("Conversation reset.")
            return
        if text in ("/quit", "/exit"):
            self.exit()
            return

        turn = Turn(turn_id=self.next_turn_id, user_text=text, status="thinking")
        self.next_turn_id += 1
        self.turns[turn.turn_id] = turn
        self.active_turn_id = turn.turn_id

        chat_log.write_user(text)
        self.run_infer(turn)

    @work(exclusive=True, group='infer')
    async def run_infer(self, turn: Turn):
        """
        Run one orchestrator call and render its outcome.
        """
        chat_log = self.query_one("#chat_log", ChatLog)
        try:
            turn.answer = await self.orchestrator.process_message(
                turn.user_text, timeout=self.settings.agent.request_timeout,
            )
        except HyprAgentError as e:
            turn.status = 'error'
            chat_log.write_error(f"Error: {e}")
            return
        turn.status = 'final'
        chat_log.write_agent(turn.answer)

    @work(exclusive=True, group='pump')
    async def _pump(self):
        """
        Render status events while the orchestrator works.

        A diff is shown as soon as it arrives rather than with the final answer.
        """
        chat_log = self.query_one("#chat_log", ChatLog)

        while True:
            ev = await self.orchestrator.updates.get()
            chat_log.write_status(ev.get('message', ''))
            if ev.get('diff'):
                chat_log.write_diff(ev['diff'])


def main():
    try:
        settings = load_settings()
    except HyprAgentError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.agent.debug, settings.agent.log_file)

    try:
        agent = build_agent(settings)
    except HyprAgentError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    app = ChatApp(settings, agent)
    app.run()


if __name__ == "__main__":
    main()
