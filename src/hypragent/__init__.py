"""
HyprAgent: edit a Hyprland configuration tree through conversation.
"""

__version__ = "0.1.0"
