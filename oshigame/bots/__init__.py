"""
Bots module - Stand-in players for test play.

Provides:
- BotPolicy: Interface for bot decision-making
- RandomPolicy: Uniform random choice
- FirstLegalPolicy: Deterministic first choice
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, FirstLegalPolicy

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
]
