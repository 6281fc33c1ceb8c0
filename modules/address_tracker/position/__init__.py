"""Position gating for the address tracker.

Components:
- PositionGate: time/distance threshold gate owning the current position
- GateDecision: outcome of evaluating one candidate fix
"""

from .position_gate import PositionGate, GateDecision

__all__ = ['PositionGate', 'GateDecision']
