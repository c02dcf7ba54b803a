import re

from token_deployer.services.template_service import OWNER_FUNCTIONS, contract_name, generate


def test_generate_is_deterministic():
    assert generate("Test", "TST", 1000) == generate("Test", "TST", 1000)


def test_generate_embeds_name_symbol_and_scaled_supply():
    src = generate("My Token", "MTK", 1000000)
    assert "contract MTKToken {" in src
    assert 'string public name = "My Token";' in src
    assert 'string public symbol = "MTK";' in src
    assert "uint8 public decimals = 18;" in src
    assert "uint256 public totalSupply = 1000000 * (10 ** uint256(decimals));" in src


def test_generate_changes_with_inputs():
    assert generate("Test", "TST", 1000) != generate("Test", "TST", 1001)
    assert generate("Test", "TST", 1000) != generate("Test", "TSU", 1000)


def test_owner_functions_are_gated():
    src = generate("Test", "TST", 1)
    for name in OWNER_FUNCTIONS:
        assert re.search(rf"function {name}\([^)]*\) external onlyOwner", src), name
    # las funciones ERC20 estándar no llevan onlyOwner
    assert not re.search(r"function transfer\([^)]*\) external onlyOwner", src)


def test_contract_name():
    assert contract_name("TST") == "TSTToken"
