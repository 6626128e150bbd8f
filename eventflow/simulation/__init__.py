"""Forward simulation and prompt composition over Event graphs."""

from __future__ import annotations

from eventflow.simulation.composer import compose
from eventflow.simulation.inheritance import collect_inherited
from eventflow.simulation.simulator import SimulationOutcome, run_simulation, simulate, simulate_event

__all__ = [
    "SimulationOutcome",
    "collect_inherited",
    "compose",
    "run_simulation",
    "simulate",
    "simulate_event",
]
