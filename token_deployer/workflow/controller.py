# token_deployer/workflow/controller.py
"""
Máquina de estados del flujo deploy / select / execute.

    DISCONNECTED --connect--> IDLE
    IDLE --deploy--> DEPLOYING --> IDLE
    IDLE --select_existing--> LOADING --> IDLE
    IDLE --execute_function--> EXECUTING(fn) --> IDLE

Los pasos de una acción son estrictamente secuenciales. Cualquier error
se convierte en `state.error` y la sesión vuelve a IDLE (o queda en
DISCONNECTED si falló el connect); no hay reintentos automáticos.
"""
import logging
import re
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from token_deployer.errors import DeployerError, ValidationError
from token_deployer.services.template_service import OWNER_FUNCTIONS, contract_name, generate
from token_deployer.workflow.state import Binding, Phase, SessionState

logger = logging.getLogger(__name__)

Listener = Callable[[SessionState], None]

_DIGITS = re.compile(r"[0-9]+")


def parse_supply(value: Any) -> int:
    """Valida el supply antes de cualquier llamada externa."""
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError("Token supply is required")
    if not _DIGITS.fullmatch(text) or int(text) <= 0:
        raise ValidationError("Invalid supply amount")
    return int(text)


def extract_owner_functions(abi: Iterable[dict], allowed: Sequence[str] = OWNER_FUNCTIONS) -> List[dict]:
    """Filtra la ABI a las funciones onlyOwner conocidas, con sus inputs intactos."""
    return [
        {"name": item["name"], "inputs": list(item.get("inputs") or [])}
        for item in abi or []
        if item.get("type") == "function" and item.get("name") in allowed
    ]


def _short(addr: str) -> str:
    return f"{addr[:6]}...{addr[-4:]}"


def _user_message(e: Exception, fallback: str) -> str:
    if isinstance(e, DeployerError):
        return str(e) or fallback
    return fallback


class WorkflowController:
    """
    Orquesta wallet (connector), backend (api) y generador de contratos.

    `connector` expone connect/ensure_network/chain_id/deploy/bind
    (ver services.chain_connector.WalletConnector) y `api` expone
    compile/save_token/list_tokens (services.api_client.DeployerApiClient).
    """

    def __init__(self, connector, api, chain_config: Dict[str, Any], listener: Optional[Listener] = None):
        self.connector = connector
        self.api = api
        self.chain_config = chain_config
        self.listener = listener
        # una sola operación en vuelo a la vez
        self._in_flight = threading.Lock()

    # --- helpers ---

    def _emit(self, state: SessionState) -> SessionState:
        if self.listener:
            self.listener(state)
        return state

    def _begin(self, state: SessionState) -> bool:
        if state.busy:
            return False
        return self._in_flight.acquire(blocking=False)

    def _refresh_tokens(self, wallet_address: str, current) -> tuple:
        try:
            return tuple(self.api.list_tokens(wallet_address))
        except DeployerError as e:
            logger.warning("Failed to load tokens for %s: %s", wallet_address, e)
            return tuple(current)

    @staticmethod
    def _rejected(state: SessionState) -> SessionState:
        return state.evolve(error="Another operation is already in progress")

    # --- transiciones ---

    def connect(self, state: SessionState) -> SessionState:
        if not self._begin(state):
            return self._rejected(state)
        try:
            self._emit(state.evolve(phase=Phase.CONNECTING, message=None, error=None))
            signer = self.connector.connect()
            chain_id = self.connector.ensure_network(self.chain_config)
            tokens = self._refresh_tokens(signer.address, ())
            logger.info("Wallet %s connected on chain %s", signer.address, chain_id)
            return self._emit(state.evolve(
                phase=Phase.IDLE,
                wallet_address=signer.address,
                signer=signer,
                chain_id=chain_id,
                tokens=tokens,
                binding=None,
                owner_functions=(),
                function_inputs={},
                executing=None,
                message=f"Connected: {_short(signer.address)}",
                error=None,
            ))
        except Exception as e:
            logger.warning("connect failed: %s", e, exc_info=not isinstance(e, DeployerError))
            return self._emit(state.fail(_user_message(e, "Failed to connect wallet")))
        finally:
            self._in_flight.release()

    def deploy(self, state: SessionState, name: str, symbol: str, supply: Any) -> SessionState:
        if not state.connected or not name or not symbol or supply in (None, ""):
            return state.evolve(error="Please fill all fields and connect wallet")
        try:
            amount = parse_supply(supply)
        except ValidationError as e:
            return state.evolve(error=str(e))

        if not self._begin(state):
            return self._rejected(state)
        try:
            current = self._emit(state.evolve(phase=Phase.DEPLOYING, message="Compiling contract...", error=None))
            source = generate(name, symbol, amount)
            artifact = self.api.compile(source, contract_name(symbol))

            current = self._emit(current.evolve(message="Deploying contract..."))
            address = self.connector.deploy(state.signer, artifact["abi"], artifact["bytecode"])
            chain_id = self.connector.chain_id()

            self.api.save_token({
                "walletAddress": state.wallet_address.lower(),
                "tokenName": name,
                "tokenSymbol": symbol,
                "tokenSupply": str(supply).strip(),
                "contractAddress": address,
                "chainId": chain_id,
            })
            tokens = self._refresh_tokens(state.wallet_address, state.tokens)

            contract = self.connector.bind(address, artifact["abi"], state.signer)
            logger.info("Token %s deployed at %s (chain %s)", symbol, address, chain_id)
            return self._emit(current.evolve(
                phase=Phase.IDLE,
                chain_id=chain_id,
                binding=Binding(address=address, abi=artifact["abi"], contract=contract),
                owner_functions=tuple(extract_owner_functions(artifact["abi"])),
                tokens=tokens,
                message=f"Contract deployed at: {address}",
            ))
        except Exception as e:
            logger.warning("deploy failed: %s", e, exc_info=not isinstance(e, DeployerError))
            return self._emit(state.fail(_user_message(e, "Deployment failed"), phase=Phase.IDLE))
        finally:
            self._in_flight.release()

    def select_existing(self, state: SessionState, record: Dict[str, Any]) -> SessionState:
        """Regenera y recompila un token guardado y se liga a su dirección (sin tx)."""
        if not state.connected:
            return state.evolve(error="Please connect wallet")
        if not self._begin(state):
            return self._rejected(state)
        try:
            current = self._emit(state.evolve(phase=Phase.LOADING, message="Loading contract...", error=None))
            source = generate(record["tokenName"], record["tokenSymbol"], parse_supply(record["tokenSupply"]))
            artifact = self.api.compile(source, contract_name(record["tokenSymbol"]))

            address = record["contractAddress"]
            contract = self.connector.bind(address, artifact["abi"], state.signer)
            return self._emit(current.evolve(
                phase=Phase.IDLE,
                binding=Binding(address=address, abi=artifact["abi"], contract=contract),
                owner_functions=tuple(extract_owner_functions(artifact["abi"])),
                message=f"Loaded {record['tokenName']} ({record['tokenSymbol']}) at {address}",
            ))
        except Exception as e:
            logger.warning("select_existing failed: %s", e, exc_info=not isinstance(e, DeployerError))
            return self._emit(state.fail(_user_message(e, "Failed to load token"), phase=Phase.IDLE))
        finally:
            self._in_flight.release()

    def set_function_input(self, state: SessionState, fn_name: str, param: str, value: str) -> SessionState:
        inputs = {k: dict(v) for k, v in state.function_inputs.items()}
        inputs.setdefault(fn_name, {})[param] = value
        return state.evolve(function_inputs=inputs)

    def execute_function(self, state: SessionState, fn_name: str, args: Optional[Sequence[Any]] = None) -> SessionState:
        """
        Ejecuta una función onlyOwner del contrato activo. Sin `args`, los
        toma de los inputs pendientes en el orden declarado en la ABI.
        """
        if not state.connected or state.binding is None:
            return state.evolve(error="No active contract")
        owner_fn = next((f for f in state.owner_functions if f["name"] == fn_name), None)
        if owner_fn is None:
            return state.evolve(error=f"Function '{fn_name}' is not available")
        if args is None:
            args = [state.input_for(fn_name, p.get("name", "")) for p in owner_fn["inputs"]]

        if not self._begin(state):
            return self._rejected(state)
        pending = None
        try:
            current = self._emit(state.evolve(
                phase=Phase.EXECUTING, executing=fn_name, message=None, error=None,
            ))
            pending = state.binding.contract.invoke(fn_name, *args)
            current = self._emit(current.evolve(
                last_tx_hash=pending.hash,
                message=f"Transaction sent: {pending.hash}",
            ))
            pending.wait()
            logger.info("%s confirmed (%s)", fn_name, pending.hash)
            return self._emit(current.evolve(
                phase=Phase.IDLE,
                executing=None,
                message=f"{fn_name} executed successfully!",
            ))
        except Exception as e:
            logger.warning("%s failed: %s", fn_name, e, exc_info=not isinstance(e, DeployerError))
            # si la tx ya salió, conservar su hash
            base = state if pending is None else state.evolve(last_tx_hash=pending.hash)
            return self._emit(base.fail(_user_message(e, f"Failed to execute {fn_name}"), phase=Phase.IDLE))
        finally:
            self._in_flight.release()
