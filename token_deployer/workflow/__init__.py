from .state import Binding, Phase, SessionState
from .controller import WorkflowController, extract_owner_functions, parse_supply

__all__ = [
    "Binding",
    "Phase",
    "SessionState",
    "WorkflowController",
    "extract_owner_functions",
    "parse_supply",
]
