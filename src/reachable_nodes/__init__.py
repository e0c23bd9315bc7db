"""Reachable Nodes - round-based hop distances from a set of source nodes."""

from reachable_nodes.solver.solve import main_solve, solve

__all__ = ["solve", "main_solve"]
