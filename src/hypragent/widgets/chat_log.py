"""
Scrolling conversation log.
"""
from rich.markdown import Markdown
from rich.syntax import Syntax
from rich.text import Text
from textual.widgets import RichLog


class ChatLog(RichLog):
    def __init__(self, **kwargs) -> None:
        kwargs.setdefault('wrap', True)
        kwargs.setdefault('markup', True)
        super().__init__(**kwargs)

    def write_user(self, text: str) -> None:
        self.write(Text.assemble(("you: ", "bold #ef9f76"), text))

    def write_agent(self, text: str) -> None:
        self.write(Text("HyprAgent", style="bold #a6e3a1"))
        self.write(Markdown(text or "_(empty response)_"))

    def write_status(self, text: str) -> None:
        self.write(Text(f"  {text}", style="italic #9399b2"))

    def write_diff(self, diff: str) -> None:
        self.write(Syntax(diff, "diff", theme="ansi_dark", word_wrap=True))

    def write_error(self, text: str) -> None:
        self.write(Text(text, style="bold #f38ba8"))
