# token_deployer/workflow/state.py
"""
Estado de sesión del workflow.

Es un valor inmutable: cada acción del controlador recibe un
SessionState y devuelve otro nuevo (dataclasses.replace). Nada se
persiste; una sesión nueva empieza siempre en DISCONNECTED.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Phase(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    IDLE = "idle"
    DEPLOYING = "deploying"
    LOADING = "loading"
    EXECUTING = "executing"


BUSY_PHASES = (Phase.CONNECTING, Phase.DEPLOYING, Phase.LOADING, Phase.EXECUTING)


@dataclass(frozen=True)
class Binding:
    """Contrato activo sobre el que opera la sesión."""

    address: str
    abi: List[dict]
    contract: Any  # BoundContract


@dataclass(frozen=True)
class SessionState:
    phase: Phase = Phase.DISCONNECTED
    wallet_address: Optional[str] = None
    signer: Any = None
    chain_id: Optional[int] = None
    binding: Optional[Binding] = None
    owner_functions: Tuple[dict, ...] = ()
    function_inputs: Dict[str, Dict[str, str]] = field(default_factory=dict)
    tokens: Tuple[dict, ...] = ()
    executing: Optional[str] = None
    last_tx_hash: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.wallet_address is not None and self.signer is not None

    @property
    def busy(self) -> bool:
        return self.phase in BUSY_PHASES

    def evolve(self, **changes) -> "SessionState":
        return replace(self, **changes)

    def fail(self, error: str, phase: Optional[Phase] = None) -> "SessionState":
        return replace(self, phase=phase or self.phase, executing=None, message=None, error=error)

    def input_for(self, fn_name: str, param: str) -> str:
        return self.function_inputs.get(fn_name, {}).get(param, "")
