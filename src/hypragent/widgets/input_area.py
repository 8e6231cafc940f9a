"""
Prompt input with recall of previously sent lines.
"""
from textual import events
from textual.message import Message
from textual.widgets import Input


class InputArea(Input):
    class Submit(Message, bubble=True):
        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.sent: list[str] = []
        self._recall: int = 0

    async def on_key(self, event: events.Key) -> None:
        if event.key == "enter":
            event.stop()
            event.prevent_default()
            text = self.value.strip()
            if not text:
                return
            self.sent.append(text)
            self._recall = len(self.sent)
            self.post_message(self.Submit(text))
            self.value = ""
        elif event.key == "up" and self.sent:
            event.stop()
            event.prevent_default()
            self._recall = max(self._recall - 1, 0)
            self.value = self.sent[self._recall]
        elif event.key == "down" and self.sent:
            event.stop()
            event.prevent_default()
            self._recall = min(self._recall + 1, len(self.sent))
            self.value = self.sent[self._recall] if self._recall < len(self.sent) else ""
