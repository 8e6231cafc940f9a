"""
Modal screens for the HyprAgent front-end.
"""

from textual import on
from textual.widgets import Static, OptionList
from textual.widgets.option_list import Option
from textual.containers import Center, Vertical
from textual.screen import ModalScreen


class StartupScreen(ModalScreen[bool]):
    """Shows what was detected and asks before the agent may touch the config tree."""
    CSS = """
#panel {
    width: 80%;
    max-width: 100;
    border: round $secondary;
    padding: 1 2;
}
#startup_options {
    margin-top: 1;
}
#panel OptionList {
    border: none;
    background: transparent;
}
    """
    BINDINGS = [
        ('1', 'choose_yes', 'yes'),
        ('2', 'choose_no', 'no'),
    ]

    def __init__(self, root: str, backend: str, detected: bool, provider: str) -> None:
        """
        Args:
            root: The configuration root the agent is sandboxed to
            backend: Name of the installation layout in use
            detected: Whether the layout was detected or is a fallback
            provider: Name of the model backend
        """
        super().__init__()
        self.root = root
        self.backend = backend
        self.detected = detected
        self.provider = provider

    def compose(self):
        if self.detected:
            found = f"Detected a [bold]{self.backend}[/bold] installation."
        else:
            found = f"[bold yellow]No Hyprland installation detected[/bold yellow], using the {self.backend} layout."
        yield Center(
                Vertical(
                    Static("[bold #cba6f7]HyprAgent[/bold #cba6f7]\n", markup=True, classes="title"),
                    Static(f"[bold]{self.root}[/bold]\n", markup=True),
                    Static(
                        f"{found}\n"
                        f"Model backend: {self.provider}\n\n"
                        "HyprAgent may read and, after you confirm a diff, modify files in this folder.\n"
                        "Every change is snapshotted first and can be rolled back.\n",
                        markup=True,
                    ),
                    OptionList(
                        Option("1. Yes, proceed", id="yes"),
                        Option("2. No, exit",     id="no"),
                        id="startup_options",
                    ),
                ),
                id="panel",
        )

    async def _on_mount(self):
        ol = self.query_one(OptionList)
        ol.focus()
        ol.highlighted = 0

    @on(OptionList.OptionSelected)
    def on_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option_id == 'yes')

    def action_choose_yes(self) -> None:
        self.dismiss(True)

    def action_choose_no(self) -> None:
        self.dismiss(False)
