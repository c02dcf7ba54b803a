# token_deployer/services/api_client.py
"""
Cliente HTTP del backend (/api/compile y /api/tokens).

Es el lado "navegador" de la aplicación: el workflow habla con el
backend a través de esta clase, nunca con la DB ni con solc directamente.
"""
from typing import Any, Dict, List, Optional

import requests

from token_deployer.errors import CompilationError, ProtocolError, TransportError, ValidationError


class DeployerApiClient:
    def __init__(self, base_url: str, timeout: float = 30, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _call(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"Could not reach {url}: {e}") from e

    @staticmethod
    def _error_body(resp: requests.Response) -> Optional[dict]:
        try:
            body = resp.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) and body.get("error") else None

    def _raise_for_status(self, resp: requests.Response) -> None:
        if resp.ok:
            return
        body = self._error_body(resp)
        if body is None:
            raise TransportError(f"Server error: {resp.status_code} {resp.reason}", status=resp.status_code)
        raise TransportError(body["error"], status=resp.status_code)

    # --- Compiler Gateway ---

    def compile(self, source: str, contract_name: str) -> Dict[str, Any]:
        """Devuelve {"abi": [...], "bytecode": "..."}."""
        resp = self._call("POST", "/api/compile", json={"source": source, "contractName": contract_name})
        if not resp.ok:
            body = self._error_body(resp)
            if body is not None and "diagnostics" in body:
                raise CompilationError(body["error"], diagnostics=body.get("diagnostics"))
            self._raise_for_status(resp)

        try:
            data = resp.json()
        except ValueError as e:
            raise ProtocolError("Invalid response from server") from e
        if (
            not isinstance(data, dict)
            or not isinstance(data.get("abi"), list)
            or not isinstance(data.get("bytecode"), str)
        ):
            raise ProtocolError("Invalid response from server")
        return {"abi": data["abi"], "bytecode": data["bytecode"]}

    # --- Persistence Gateway ---

    def save_token(self, record: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._call("POST", "/api/tokens", json=record)
        if resp.status_code == 400:
            body = self._error_body(resp)
            raise ValidationError(body["error"] if body else "Missing required fields")
        self._raise_for_status(resp)
        try:
            return resp.json()
        except ValueError as e:
            raise ProtocolError("Invalid response from server") from e

    def list_tokens(self, wallet_address: str) -> List[Dict[str, Any]]:
        resp = self._call("GET", f"/api/tokens/{wallet_address.lower()}")
        self._raise_for_status(resp)
        try:
            data = resp.json()
        except ValueError as e:
            raise ProtocolError("Invalid response from server") from e
        if not isinstance(data, list):
            raise ProtocolError("Invalid response from server")
        return data
