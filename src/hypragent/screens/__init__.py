from .startup_screen import StartupScreen

__all__ = ["StartupScreen"]
