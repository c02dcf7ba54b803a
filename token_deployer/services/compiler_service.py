# token_deployer/services/compiler_service.py
import logging
from functools import lru_cache
from typing import Any, Dict, List

import solcx
from solcx.exceptions import SolcError

from token_deployer.errors import CompilationError

logger = logging.getLogger(__name__)

SOURCE_FILE = "contract.sol"


@lru_cache(maxsize=None)
def _ensure_solc(version: str) -> str:
    """Instala la versión de solc la primera vez que se pide."""
    installed = {str(v) for v in solcx.get_installed_solc_versions()}
    if version not in installed:
        logger.info("Instalando solc %s", version)
        solcx.install_solc(version)
    return version


def _standard_input(source: str) -> Dict[str, Any]:
    return {
        "language": "Solidity",
        "sources": {SOURCE_FILE: {"content": source}},
        "settings": {
            "outputSelection": {
                "*": {
                    "*": ["abi", "evm.bytecode"],
                }
            }
        },
    }


def error_messages(diagnostics: List[dict]) -> List[str]:
    """Mensajes de los diagnósticos con severity=error; los warnings se ignoran."""
    return [d.get("message", "") for d in diagnostics or [] if d.get("severity") == "error"]


def extract_artifact(output: Dict[str, Any], unit_name: str) -> Dict[str, Any]:
    """
    Convierte la salida standard-JSON de solc en {"abi", "bytecode"}.
    Lanza CompilationError si hay errores o si la unidad no existe.
    """
    errors = error_messages(output.get("errors") or [])
    if errors:
        raise CompilationError("\n".join(errors), diagnostics=errors)

    unit = (output.get("contracts") or {}).get(SOURCE_FILE, {}).get(unit_name)
    if not unit:
        raise CompilationError(f"Contract '{unit_name}' not found in compiler output")

    return {
        "abi": unit.get("abi") or [],
        "bytecode": unit.get("evm", {}).get("bytecode", {}).get("object", ""),
    }


def compile_contract(source: str, contract_name: str, solc_version: str = "0.8.20") -> Dict[str, Any]:
    """Compila `source` y devuelve la ABI y el bytecode de `contract_name`."""
    version = _ensure_solc(solc_version)
    try:
        output = solcx.compile_standard(_standard_input(source), solc_version=version)
    except SolcError as e:
        # py-solc-x ya corta cuando hay errores; recuperamos los diagnósticos crudos
        diagnostics = getattr(e, "error_dict", None)
        if diagnostics:
            output = {"errors": diagnostics}
        else:
            raise CompilationError(str(e)) from e

    return extract_artifact(output, contract_name)
