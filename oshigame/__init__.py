"""
Oshigame - Rules engine for oshikatsu board game test play.

Packages:
- engine_core: pure state, rules and the reducer
- session: controller, persistence, action log and the bot game loop
- bots: stand-in player policies
- api: HTTP service (FastAPI)
"""

__version__ = "0.1.0"
