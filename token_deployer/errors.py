# token_deployer/errors.py
"""
Excepciones del dominio.

Cada capa lanza la suya y las fronteras (rutas HTTP, acciones del
workflow) las convierten en un mensaje para el usuario.
"""
from typing import List, Optional


class DeployerError(Exception):
    """Base de todos los errores de la aplicación."""


class ValidationError(DeployerError):
    """Entrada inválida o incompleta; nunca llega a la red."""


class WalletUnavailable(DeployerError):
    """No hay proveedor de wallet configurado."""


class ChainError(DeployerError):
    """La wallet/RPC rechazó o falló una petición."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class CompilationError(DeployerError):
    """El compilador reportó uno o más diagnósticos con severity=error."""

    def __init__(self, message: str, diagnostics: Optional[List[str]] = None):
        super().__init__(message)
        self.diagnostics = list(diagnostics or [])


class TransportError(DeployerError):
    """Fallo HTTP/red al hablar con el backend (compilador o store)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ProtocolError(DeployerError):
    """Respuesta exitosa pero con una forma inesperada."""


class StoreError(DeployerError):
    """Fallo de la capa de persistencia."""
