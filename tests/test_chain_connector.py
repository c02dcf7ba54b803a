from types import SimpleNamespace

import pytest
from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from token_deployer.errors import ChainError, ValidationError, WalletUnavailable
from token_deployer.services.chain_connector import (
    BoundContract,
    FunctionDescriptor,
    PendingTransaction,
    Signer,
    WalletConnector,
    build_registry,
)

CHAIN = {"chainId": "0x279f", "chainName": "Monad Testnet"}
ACCOUNT = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


class FakeProvider:
    """Responde a make_request con un handler por método (dict o callable)."""

    def __init__(self, handlers):
        self.handlers = handlers
        self.calls = []

    def make_request(self, method, params):
        self.calls.append(method)
        handler = self.handlers.get(method)
        if handler is None:
            return {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": f"{method} not found"}}
        out = handler() if callable(handler) else handler
        return {"jsonrpc": "2.0", "id": 1, **out}


def _connector(handlers, **kw):
    provider = FakeProvider(handlers)
    return WalletConnector(SimpleNamespace(provider=provider), **kw), provider


def test_connect_without_provider():
    with pytest.raises(WalletUnavailable):
        WalletConnector(None).connect()


def test_connect_requests_accounts():
    conn, provider = _connector({"eth_requestAccounts": {"result": [ACCOUNT]}})
    signer = conn.connect()
    assert signer.address == "0x5FbDB2315678afecb367f032d93F642f64180aa3"
    assert signer.account is None
    # reconectar es seguro
    assert conn.connect() == signer
    assert provider.calls == ["eth_requestAccounts", "eth_requestAccounts"]


def test_connect_falls_back_to_eth_accounts():
    conn, provider = _connector({"eth_accounts": {"result": [ACCOUNT]}})
    assert conn.connect().address.lower() == ACCOUNT
    assert provider.calls == ["eth_requestAccounts", "eth_accounts"]


def test_connect_user_rejected():
    conn, _ = _connector({"eth_requestAccounts": {"error": {"code": 4001, "message": "User rejected the request."}}})
    with pytest.raises(ChainError) as exc:
        conn.connect()
    assert exc.value.code == 4001


def test_connect_with_private_key():
    conn, provider = _connector({}, private_key=TEST_KEY)
    signer = conn.connect()
    assert signer.address == Account.from_key(TEST_KEY).address
    assert signer.account is not None
    assert provider.calls == []


def test_ensure_network_switch_ok():
    conn, provider = _connector({"wallet_switchEthereumChain": {"result": None}})
    assert conn.ensure_network(CHAIN) == 0x279F
    assert provider.calls == ["wallet_switchEthereumChain"]


def test_ensure_network_adds_unknown_chain():
    conn, provider = _connector({
        "wallet_switchEthereumChain": {"error": {"code": 4902, "message": "Unrecognized chain ID"}},
        "wallet_addEthereumChain": {"result": None},
        "eth_chainId": {"result": "0x279f"},
    })
    assert conn.ensure_network(CHAIN) == 0x279F
    assert provider.calls == ["wallet_switchEthereumChain", "wallet_addEthereumChain", "eth_chainId"]


def test_ensure_network_add_without_switch_fails():
    conn, _ = _connector({
        "wallet_switchEthereumChain": {"error": {"code": 4902, "message": "Unrecognized chain ID"}},
        "wallet_addEthereumChain": {"result": None},
        "eth_chainId": {"result": "0x1"},
    })
    with pytest.raises(ChainError):
        conn.ensure_network(CHAIN)


def test_ensure_network_other_error_propagates():
    conn, provider = _connector({
        "wallet_switchEthereumChain": {"error": {"code": 4001, "message": "User rejected"}},
    })
    with pytest.raises(ChainError) as exc:
        conn.ensure_network(CHAIN)
    assert exc.value.code == 4001
    assert "wallet_addEthereumChain" not in provider.calls


def test_ensure_network_plain_node_on_right_chain():
    conn, _ = _connector({"eth_chainId": {"result": "0x279f"}})
    assert conn.ensure_network(CHAIN) == 0x279F


def test_build_registry_and_coercion():
    abi = [
        {"type": "function", "name": "allowSellWithAmount",
         "inputs": [{"name": "user", "type": "address"}, {"name": "amount", "type": "uint256"}]},
        {"type": "function", "name": "pause", "inputs": []},
        {"type": "event", "name": "Paused", "inputs": []},
    ]
    reg = build_registry(abi)
    assert set(reg) == {"allowSellWithAmount", "pause"}
    fn = reg["allowSellWithAmount"]
    assert fn.param_names == ["user", "amount"]
    assert fn.coerce([ACCOUNT, "0x10"]) == ["0x5FbDB2315678afecb367f032d93F642f64180aa3", 16]

    with pytest.raises(ValidationError):
        fn.coerce([ACCOUNT])
    with pytest.raises(ValidationError):
        fn.coerce([ACCOUNT, "ten"])
    with pytest.raises(ValidationError):
        fn.coerce(["not-an-address", "1"])


@pytest.mark.parametrize("raw, expected", [("010", 10), (" 25 ", 25), ("0x10", 16), ("0XfF", 255), (7, 7)])
def test_integer_coercion_is_decimal_or_hex(raw, expected):
    assert FunctionDescriptor("burn", (("amount", "uint256"),)).coerce([raw]) == [expected]


@pytest.mark.parametrize("raw", ["1_000", "0b101", "0o17", "1e3", "", "0x"])
def test_integer_coercion_rejects_other_literals(raw):
    with pytest.raises(ValidationError):
        FunctionDescriptor("burn", (("amount", "uint256"),)).coerce([raw])


def test_bool_coercion():
    fn = FunctionDescriptor("setFlag", (("on", "bool"),))
    assert fn.coerce(["true"]) == [True]
    assert fn.coerce(["0"]) == [False]


class _Call:
    def __init__(self, sink):
        self.sink = sink

    def transact(self, tx):
        self.sink.append(tx)
        return b"\x12" * 32


def _eth(receipt, sink, bytecodes):
    def contract(abi=None, bytecode=None, address=None):
        bytecodes.append(bytecode)
        return SimpleNamespace(constructor=lambda: _Call(sink))

    return SimpleNamespace(
        contract=contract,
        wait_for_transaction_receipt=lambda tx_hash, timeout=None: receipt,
    )


def test_deploy_prefixes_bytecode_and_returns_address():
    sink, bytecodes = [], []
    receipt = {"status": 1, "contractAddress": ACCOUNT}
    w3 = SimpleNamespace(eth=_eth(receipt, sink, bytecodes))
    conn = WalletConnector(w3)
    address = conn.deploy(Signer(address="0x5FbDB2315678afecb367f032d93F642f64180aa3"), [], "6080")
    assert address == "0x5FbDB2315678afecb367f032d93F642f64180aa3"
    assert bytecodes == ["0x6080"]
    assert sink == [{"from": "0x5FbDB2315678afecb367f032d93F642f64180aa3"}]


def test_deploy_reverted():
    w3 = SimpleNamespace(eth=_eth({"status": 0, "contractAddress": None}, [], []))
    with pytest.raises(ChainError):
        WalletConnector(w3).deploy(Signer(address=ACCOUNT), [], "0x6080")


# --- invoke / send / wait ---

TOKEN = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
BURN_ABI = [{"type": "function", "name": "burn", "inputs": [{"name": "amount", "type": "uint256"}]}]


class _FnCall:
    """Lo que devuelve contract.functions[name](*args)."""

    def __init__(self, args, gas=21000, fail=None):
        self.args = args
        self.gas = gas
        self.fail = fail
        self.transacted = []
        self.built = []

    def transact(self, tx):
        if self.fail:
            raise self.fail
        self.transacted.append(tx)
        return b"\x34" * 32

    def estimate_gas(self, tx):
        if self.fail:
            raise self.fail
        return self.gas

    def build_transaction(self, tx):
        self.built.append(dict(tx))
        return dict(tx, to=TOKEN, value=0, data="0x42966c68" + "00" * 31 + "0a")


class _Chain:
    """w3 mínimo: cuenta nonces, guarda los raw tx y devuelve recibos."""

    def __init__(self, receipt=None, base_fee=7, wait_error=None):
        self.receipt = {"status": 1} if receipt is None else receipt
        self.base_fee = base_fee
        self.wait_error = wait_error
        self.raw = []
        self.waited = []
        self.calls = []

    def contract(self, address=None, abi=None, **_):
        def factory(*args):
            call = _FnCall(args)
            self.calls.append(call)
            return call

        return SimpleNamespace(address=address, functions={i["name"]: factory for i in abi})

    def w3(self):
        eth = SimpleNamespace(
            contract=self.contract,
            chain_id=10143,
            gas_price=5,
            get_transaction_count=lambda addr, block: 3,
            get_block=lambda tag: {} if self.base_fee is None else {"baseFeePerGas": self.base_fee},
            send_raw_transaction=self.send_raw,
            wait_for_transaction_receipt=self.wait,
        )
        return SimpleNamespace(eth=eth, to_wei=Web3.to_wei)

    def send_raw(self, raw):
        self.raw.append(bytes(raw))
        return Web3.keccak(raw)

    def wait(self, tx_hash, timeout=None):
        self.waited.append((tx_hash, timeout))
        if self.wait_error:
            raise self.wait_error
        return self.receipt


def test_invoke_returns_pending_transaction_then_waits():
    chain = _Chain(receipt={"status": 1, "blockNumber": 9})
    conn = WalletConnector(chain.w3(), receipt_timeout=30)
    bound = conn.bind(TOKEN.lower(), BURN_ABI, Signer(address=TOKEN))
    assert isinstance(bound, BoundContract)

    pending = bound.invoke("burn", "010")
    assert isinstance(pending, PendingTransaction)
    assert pending.hash == "0x" + "34" * 32
    assert chain.calls[0].args == (10,)
    assert chain.calls[0].transacted == [{"from": TOKEN}]
    assert chain.waited == []

    assert pending.wait() == {"status": 1, "blockNumber": 9}
    assert chain.waited == [(pending.hash, 30)]


def test_invoke_unknown_function():
    conn = WalletConnector(_Chain().w3())
    bound = conn.bind(TOKEN, BURN_ABI, Signer(address=TOKEN))
    with pytest.raises(ValidationError):
        bound.invoke("mint", 1)


def test_invoke_reverted_receipt_raises_on_wait():
    chain = _Chain(receipt={"status": 0})
    bound = WalletConnector(chain.w3()).bind(TOKEN, BURN_ABI, Signer(address=TOKEN))
    pending = bound.invoke("burn", 1)
    with pytest.raises(ChainError) as exc:
        pending.wait()
    assert pending.hash in str(exc.value)


def test_wait_timeout_becomes_chain_error():
    chain = _Chain(wait_error=TimeExhausted("not in chain after 1 seconds"))
    conn = WalletConnector(chain.w3(), receipt_timeout=1)
    with pytest.raises(ChainError) as exc:
        conn.wait("0x" + "aa" * 32)
    assert "not confirmed after 1s" in str(exc.value)


def test_send_revert_during_estimate_is_chain_error():
    account = Account.from_key(TEST_KEY)
    conn = WalletConnector(_Chain().w3())
    call = _FnCall((1,), fail=ContractLogicError("execution reverted: Not owner"))
    with pytest.raises(ChainError) as exc:
        conn.send(Signer(address=account.address, account=account), call)
    assert "Not owner" in str(exc.value)


def test_send_signs_locally_with_eip1559_fees():
    account = Account.from_key(TEST_KEY)
    chain = _Chain(base_fee=7)
    conn = WalletConnector(chain.w3())
    call = _FnCall((10,))

    tx_hash = conn.send(Signer(address=account.address, account=account), call)

    built = call.built[0]
    assert built["from"] == account.address
    assert built["nonce"] == 3
    assert built["chainId"] == 10143
    assert built["gas"] == 25200
    assert built["maxPriorityFeePerGas"] == Web3.to_wei(2, "gwei")
    assert built["maxFeePerGas"] == 14 + Web3.to_wei(2, "gwei")
    assert "gasPrice" not in built
    assert call.transacted == []
    assert Account.recover_transaction(chain.raw[0]) == account.address
    assert tx_hash == Web3.to_hex(Web3.keccak(chain.raw[0]))


def test_send_uses_legacy_gas_price_without_base_fee():
    account = Account.from_key(TEST_KEY)
    chain = _Chain(base_fee=None)
    call = _FnCall((10,))
    WalletConnector(chain.w3()).send(Signer(address=account.address, account=account), call)
    assert call.built[0]["gasPrice"] == 5
    assert "maxFeePerGas" not in call.built[0]
    assert Account.recover_transaction(chain.raw[0]) == account.address


def test_invoke_with_private_key_signer():
    chain = _Chain()
    conn = WalletConnector(chain.w3(), private_key=TEST_KEY)
    signer = conn.connect()
    pending = conn.bind(TOKEN, BURN_ABI, signer).invoke("burn", "0x0a")
    assert chain.calls[0].args == (10,)
    assert len(chain.raw) == 1
    assert pending.hash == Web3.to_hex(Web3.keccak(chain.raw[0]))
    assert pending.wait() == {"status": 1}
