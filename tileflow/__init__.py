"""
Tileflow - Board reconciliation client for a tile-merging puzzle.

The rules engine (moves, merges, scoring, spawning) lives on a remote
service. This package only renders state and requests transitions:
- Validates board snapshots from the service
- Infers which tile went where between two snapshots
- Sequences the two-phase slide/settle animation
- Tracks tile identities across a game session
"""

__version__ = "0.1.0"
