"""
tilebench package initialization.

Hosts the micro-benchmark harness (lifecycle, sequential sampling, actor
stub) together with the vector-tile parsing benchmark suite and the
collaborators it needs to run end to end.
"""

__all__ = [
    "cli",
    "config",
    "actor",
    "harness",
    "benchmarks",
    "fixtures",
    "style",
    "tile",
]
