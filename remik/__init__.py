"""Top-level package for the Remik (Polish Rummy) game engine."""

from . import actions, cards, events, melds, rules, state

__all__ = [
    "actions",
    "cards",
    "events",
    "melds",
    "rules",
    "state",
]
