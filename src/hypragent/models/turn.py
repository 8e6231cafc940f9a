"""
Data models for the HyprAgent terminal front-end.
"""
from dataclasses import dataclass


@dataclass
class Turn:
    """
    Represents a single conversation turn between user and assistant.
    """
    turn_id: int
    user_text: str = ""
    answer: str = ""
    status: str = 'idle'
