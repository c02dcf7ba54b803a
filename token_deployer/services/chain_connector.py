# token_deployer/services/chain_connector.py
"""
Conector con la wallet.

La "wallet inyectada" es un proveedor web3: el nodo detrás de
WEB3_PROVIDER_URI. Si hay PRIVATE_KEY, las transacciones se firman en
local con eth-account; si no, las firma la cuenta desbloqueada del nodo.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from eth_account import Account
from requests.exceptions import RequestException
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from token_deployer.errors import ChainError, ValidationError, WalletUnavailable

logger = logging.getLogger(__name__)

# EIP-1193 / MetaMask
UNRECOGNIZED_CHAIN = 4902
METHOD_NOT_FOUND = -32601

_HEX_INT = re.compile(r"0[xX][0-9a-fA-F]+")
_DEC_INT = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class Signer:
    address: str
    account: Any = None  # LocalAccount; None -> firma el nodo


@dataclass(frozen=True)
class FunctionDescriptor:
    """Función invocable: nombre y parámetros (name, type) en orden."""

    name: str
    inputs: Tuple[Tuple[str, str], ...] = ()

    @property
    def param_names(self) -> List[str]:
        return [n for n, _ in self.inputs]

    def coerce(self, args) -> list:
        if len(args) != len(self.inputs):
            raise ValidationError(
                f"{self.name} expects {len(self.inputs)} argument(s), got {len(args)}"
            )
        return [_coerce(v, t, n) for v, (n, t) in zip(args, self.inputs)]


def _coerce(value: Any, sol_type: str, param: str) -> Any:
    if "[" in sol_type:
        return value
    if sol_type.startswith(("uint", "int")):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        text = str(value).strip()
        if _HEX_INT.fullmatch(text):
            return int(text, 16)
        if _DEC_INT.fullmatch(text):
            return int(text, 10)
        raise ValidationError(f"'{param}' must be an integer ({sol_type})")
    if sol_type == "address":
        try:
            return Web3.to_checksum_address(str(value).strip())
        except ValueError:
            raise ValidationError(f"'{param}' is not a valid address") from None
    if sol_type == "bool":
        return str(value).lower() in ("1", "true", "yes", "on")
    return value


def build_registry(abi: List[dict]) -> Dict[str, FunctionDescriptor]:
    """Resuelve una sola vez las funciones de la ABI (la primera gana si hay overloads)."""
    registry: Dict[str, FunctionDescriptor] = {}
    for item in abi or []:
        if item.get("type") != "function" or item.get("name") in registry:
            continue
        inputs = tuple((i.get("name", ""), i.get("type", "")) for i in item.get("inputs") or [])
        registry[item["name"]] = FunctionDescriptor(item["name"], inputs)
    return registry


class PendingTransaction:
    """Hash disponible de inmediato; `wait()` bloquea hasta la confirmación."""

    def __init__(self, tx_hash: str, waiter: Callable[[str], dict]):
        self.hash = tx_hash
        self._waiter = waiter

    def wait(self) -> dict:
        return self._waiter(self.hash)


class BoundContract:
    def __init__(self, connector: "WalletConnector", contract, registry: Dict[str, FunctionDescriptor], signer: Signer):
        self._connector = connector
        self._contract = contract
        self.functions = registry
        self.signer = signer

    @property
    def address(self) -> str:
        return self._contract.address

    def invoke(self, fn_name: str, *args) -> PendingTransaction:
        descriptor = self.functions.get(fn_name)
        if descriptor is None:
            raise ValidationError(f"Function '{fn_name}' does not exist on contract {self.address}")
        call = self._contract.functions[fn_name](*descriptor.coerce(args))
        tx_hash = self._connector.send(self.signer, call)
        return PendingTransaction(tx_hash, self._connector.wait)


class WalletConnector:
    def __init__(self, w3: Optional[Web3], private_key: Optional[str] = None, receipt_timeout: float = 600):
        self.w3 = w3
        self.private_key = private_key
        self.receipt_timeout = receipt_timeout

    # --- RPC crudo ---

    def _request(self, method: str, params: list) -> Any:
        if self.w3 is None:
            raise WalletUnavailable("No wallet provider configured")
        try:
            resp = self.w3.provider.make_request(method, params)
        except (RequestException, OSError, Web3Exception) as e:
            raise ChainError(f"{method} failed: {e}") from e

        error = resp.get("error")
        if error:
            if isinstance(error, dict):
                raise ChainError(error.get("message") or str(error), code=error.get("code"))
            raise ChainError(str(error))
        return resp.get("result")

    def chain_id(self) -> int:
        result = self._request("eth_chainId", [])
        return int(result, 16) if isinstance(result, str) else int(result)

    # --- Operaciones ---

    def connect(self) -> Signer:
        """Pide acceso a la cuenta. Se puede llamar varias veces."""
        if self.w3 is None:
            raise WalletUnavailable("No wallet provider configured")

        if self.private_key:
            account = Account.from_key(self.private_key)
            return Signer(address=account.address, account=account)

        try:
            accounts = self._request("eth_requestAccounts", [])
        except ChainError as e:
            if e.code != METHOD_NOT_FOUND:
                raise
            accounts = self._request("eth_accounts", [])

        if not accounts:
            raise ChainError("Wallet returned no accounts")
        return Signer(address=Web3.to_checksum_address(accounts[0]))

    def ensure_network(self, chain_config: Dict[str, Any]) -> int:
        """
        Cambia la wallet a `chain_config["chainId"]`. Si la wallet no conoce la
        red (4902) la agrega y vuelve a comprobar la red activa.
        """
        target = int(chain_config["chainId"], 16)
        try:
            self._request("wallet_switchEthereumChain", [{"chainId": chain_config["chainId"]}])
            return target
        except ChainError as e:
            if e.code == METHOD_NOT_FOUND:
                # Nodo sin API de wallet: sólo podemos verificar
                current = self.chain_id()
                if current != target:
                    raise ChainError(f"Provider is on chain {current}, expected {target}") from e
                return current
            if e.code != UNRECOGNIZED_CHAIN:
                raise

        logger.info("Red %s desconocida para la wallet; agregándola", chain_config.get("chainName"))
        self._request("wallet_addEthereumChain", [chain_config])
        current = self.chain_id()
        if current != target:
            raise ChainError(f"Wallet did not switch to chain {target} (still on {current})")
        return current

    def deploy(self, signer: Signer, abi: List[dict], bytecode: str) -> str:
        """Envía la creación del contrato y bloquea hasta la confirmación."""
        if self.w3 is None:
            raise WalletUnavailable("No wallet provider configured")
        prefixed = bytecode if bytecode.startswith("0x") else f"0x{bytecode}"
        factory = self.w3.eth.contract(abi=abi, bytecode=prefixed)

        tx_hash = self.send(signer, factory.constructor())
        receipt = self.wait(tx_hash)
        address = receipt.get("contractAddress")
        if not address:
            raise ChainError(f"Transaction {tx_hash} did not create a contract")
        return Web3.to_checksum_address(address)

    def bind(self, address: str, abi: List[dict], signer: Signer) -> BoundContract:
        if self.w3 is None:
            raise WalletUnavailable("No wallet provider configured")
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        return BoundContract(self, contract, build_registry(abi), signer)

    # --- Envío / espera ---

    def send(self, signer: Signer, call) -> str:
        """Firma y manda `call` (función o constructor). Devuelve tx_hash (hex)."""
        try:
            if signer.account is None:
                tx_hash = call.transact({"from": signer.address})
            else:
                tx = self._build_transaction(signer, call)
                signed = signer.account.sign_transaction(tx)
                tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            raise ChainError(f"Execution reverted: {e}") from e
        except (ValueError, RequestException, Web3Exception) as e:
            raise ChainError(str(e)) from e
        return Web3.to_hex(tx_hash)

    def _build_transaction(self, signer: Signer, call) -> dict:
        w3 = self.w3
        tx_params = {
            "from": signer.address,
            "nonce": w3.eth.get_transaction_count(signer.address, "pending"),
            "chainId": w3.eth.chain_id,
        }
        tx_params["gas"] = int(call.estimate_gas(tx_params) * 1.2)

        # EIP-1559 (fallback legacy si la chain no expone baseFeePerGas)
        latest = w3.eth.get_block("latest")
        base_fee = latest.get("baseFeePerGas")
        if base_fee is not None:
            max_priority = w3.to_wei(2, "gwei")
            tx_params["maxFeePerGas"] = int(base_fee * 2) + max_priority
            tx_params["maxPriorityFeePerGas"] = max_priority
        else:
            tx_params["gasPrice"] = w3.eth.gas_price

        return call.build_transaction(tx_params)

    def wait(self, tx_hash: str) -> dict:
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except TimeExhausted as e:
            raise ChainError(f"Transaction {tx_hash} not confirmed after {self.receipt_timeout}s") from e
        receipt = dict(receipt)
        if receipt.get("status") == 0:
            raise ChainError(f"Transaction {tx_hash} reverted")
        return receipt
