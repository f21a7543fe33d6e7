"""Core mathematics and configuration for the sports-edge analytics engine.

This package contains pure, sport-agnostic building blocks:

- ``odds_math``         — price/probability conversion, vig removal, EV
- ``sport_config``      — per-sport constants (league averages, home advantage, etc.)
- ``matchup_interface`` — ABCs and DTOs for swappable matchup models

Nothing in this package imports from ``sportsedge.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
