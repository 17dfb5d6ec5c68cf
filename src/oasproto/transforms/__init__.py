from .annotate import annotate
from .inject import inject_field_property
from .invariants import Violation, find_violations
from .pipeline import PHASES, new_state, rewrite
from .restructure import restructure
from .simplify import simplify
from .state import RewriteState, VisitedSet

__all__ = [
    "PHASES",
    "RewriteState",
    "Violation",
    "VisitedSet",
    "annotate",
    "find_violations",
    "inject_field_property",
    "new_state",
    "restructure",
    "rewrite",
    "simplify",
]
