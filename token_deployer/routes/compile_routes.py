# token_deployer/routes/compile_routes.py
import logging

from flask import Blueprint, current_app, jsonify, request

from token_deployer.errors import CompilationError
from token_deployer.services.compiler_service import compile_contract

logger = logging.getLogger(__name__)

bp = Blueprint("compile", __name__)


@bp.post("")
def compile_source():
    """
    Compilar un contrato Solidity
    ---
    tags:
      - Compiler
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - source
            - contractName
          properties:
            source:
              type: string
              description: Código Solidity completo.
            contractName:
              type: string
              example: "TSTToken"
    responses:
      200:
        description: "{abi, bytecode}"
      400:
        description: Faltan campos
      500:
        description: Error de compilación (incluye los diagnósticos)
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"ok": False, "error": "Missing source or contractName"}), 400
    source = data.get("source")
    contract_name = (data.get("contractName") or "").strip()

    if not source or not contract_name:
        return jsonify({"ok": False, "error": "Missing source or contractName"}), 400

    try:
        result = compile_contract(source, contract_name, solc_version=current_app.config["SOLC_VERSION"])
    except CompilationError as e:
        logger.error("Compilation error for %s: %s", contract_name, e)
        return jsonify({"ok": False, "error": str(e), "diagnostics": e.diagnostics}), 500
    except Exception as e:
        # solc no instalable, binario roto, etc.
        logger.exception("Compiler failure for %s", contract_name)
        return jsonify({"ok": False, "error": f"Compilation failed: {e}"}), 500

    return jsonify(result), 200
