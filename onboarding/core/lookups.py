"""
Resultado das consultas externas e controle de requisições superadas.
"""
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import ErrorKind


@dataclass(frozen=True)
class LookupResult:
    """
    Resultado transitório de uma consulta externa (nunca persistido).

    Attributes:
        found: Se a consulta trouxe dados
        data: Campos encontrados (endereço, atividade, ...)
        error_kind: InvalidInput, LookupNotFound ou LookupTransportError
        message: Descrição do problema para log/aviso
    """
    found: bool
    data: Optional[Dict[str, Any]] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Dict[str, Any]) -> "LookupResult":
        return cls(found=True, data=data)

    @classmethod
    def failure(cls, error_kind: ErrorKind, message: str) -> "LookupResult":
        return cls(found=False, error_kind=error_kind, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "data": self.data,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
        }


class LatestRequestTracker:
    """
    Emite tickets crescentes por campo; só o ticket mais recente de um
    campo pode aplicar seu resultado. Respostas de consultas anteriores
    que chegam depois são descartadas.
    """

    def __init__(self) -> None:
        self._latest: Dict[str, int] = {}
        self._lock = threading.Lock()

    def issue(self, key: str) -> int:
        with self._lock:
            ticket = self._latest.get(key, 0) + 1
            self._latest[key] = ticket
            return ticket

    def is_latest(self, key: str, ticket: int) -> bool:
        with self._lock:
            return self._latest.get(key) == ticket
