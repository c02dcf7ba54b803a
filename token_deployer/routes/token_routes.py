# token_deployer/routes/token_routes.py
from flask import Blueprint, jsonify, request

from token_deployer.errors import StoreError, ValidationError
from token_deployer.services import token_store

bp = Blueprint("tokens", __name__)  # el prefijo se aplica al registrar en token_deployer/__init__.py


@bp.post("")
def create_token():
    """
    Tokens: registrar un despliegue
    ---
    tags:
      - Tokens
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - walletAddress
            - tokenName
            - tokenSymbol
            - tokenSupply
            - contractAddress
            - chainId
          properties:
            walletAddress:
              type: string
              example: "0xAbC0000000000000000000000000000000000001"
            tokenName:
              type: string
              example: "Test"
            tokenSymbol:
              type: string
              example: "TST"
            tokenSupply:
              type: string
              example: "1000"
            contractAddress:
              type: string
              example: "0x5FbDB2315678afecb367f032d93F642f64180aa3"
            chainId:
              type: integer
              example: 10143
    responses:
      200:
        description: Registro creado (con id y deployedAt)
      400:
        description: Faltan campos
      500:
        description: Error de la DB
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"ok": False, "error": "Missing required fields"}), 400
    try:
        token = token_store.save(data)
    except ValidationError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    except StoreError as e:
        return jsonify({"ok": False, "error": str(e)}), 500
    return jsonify(token.to_dict()), 200


@bp.get("/<wallet_address>")
def list_tokens(wallet_address: str):
    """
    Tokens: listar los de una wallet (case-insensitive, orden de inserción)
    ---
    tags:
      - Tokens
    parameters:
      - in: path
        name: wallet_address
        required: true
        type: string
        example: "0xabc0000000000000000000000000000000000001"
    responses:
      200:
        description: Lista de registros
      500:
        description: Error de la DB
    """
    try:
        tokens = token_store.list_by_wallet(wallet_address)
    except StoreError as e:
        return jsonify({"ok": False, "error": str(e)}), 500
    return jsonify([t.to_dict() for t in tokens]), 200
