"""State/store layer.

Decoded report deltas are merged here into the single cumulative printer
state that observers read.
"""

from pybambu.state.merge import is_absent, merge_models, merge_state
from pybambu.state.store import ReadWriteLock, StateStore

__all__ = [
    "ReadWriteLock",
    "StateStore",
    "is_absent",
    "merge_models",
    "merge_state",
]
