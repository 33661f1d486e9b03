import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import requests

from ..config import AppConfig
from ..core.errors import ErrorKind
from ..core.lookups import LookupResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CnaeActivity:
    """Subclasse CNAE do catálogo do IBGE."""
    id: str
    description: str

    def display(self) -> str:
        return f"{self.id} - {self.description}"


def deduplicate(entries: Iterable[Any]) -> List[CnaeActivity]:
    """
    Converte a resposta do IBGE em CnaeActivity, mantendo a primeira
    ocorrência de cada id e descartando as repetições seguintes.
    Entradas sem id são ignoradas.
    """
    seen = set()
    unique: List[CnaeActivity] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        raw_id = entry.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            continue
        activity_id = str(raw_id).strip()
        if activity_id in seen:
            continue
        seen.add(activity_id)
        description = entry.get("descricao") or entry.get("description") or ""
        unique.append(CnaeActivity(id=activity_id, description=str(description)))
    return unique


class CnaeCatalog:
    """
    Catálogo de atividades CNAE.

    Busca a lista uma única vez e filtra localmente a cada tecla
    digitada, sem novas chamadas de rede. Se a busca falhar, o catálogo
    fica vazio e o erro fica disponível em last_error; passados
    cnae_retry_after_s segundos, a próxima consulta busca de novo.
    """

    def __init__(self, config: AppConfig, http: Optional[requests.Session] = None) -> None:
        self._url = config.ibge_cnae_url
        self._timeout_s = config.lookup_timeout_s
        self._retry_after_s = config.cnae_retry_after_s
        self._failed_at: Optional[float] = None
        self._http = http or requests.Session()
        self._items: Optional[List[CnaeActivity]] = None
        self._lock = threading.Lock()
        self.last_error: Optional[LookupResult] = None

    @property
    def loaded(self) -> bool:
        return self._items is not None

    def load(self) -> LookupResult:
        """
        Garante que o catálogo foi buscado. Depois de um sucesso não há nova
        busca; depois de uma falha, tenta de novo quando a espera terminar.
        """
        with self._lock:
            if self._items is not None:
                if self.last_error is None:
                    return LookupResult.success({"count": len(self._items)})
                if time.monotonic() - self._failed_at < self._retry_after_s:
                    return self.last_error
                logger.info("Nova tentativa de carregar o catálogo CNAE após falha")
            return self._fetch()

    def reload(self) -> LookupResult:
        with self._lock:
            self._items = None
            return self._fetch()

    def _fetch(self) -> LookupResult:
        try:
            response = self._http.get(
                self._url,
                headers={"Accept": "application/json"},
                timeout=self._timeout_s,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Erro ao buscar catálogo CNAE: url={self._url}, error={type(e).__name__}: {e}")
            self._items = []
            self.last_error = LookupResult.failure(
                ErrorKind.LOOKUP_TRANSPORT_ERROR,
                "Não foi possível carregar a lista de CNAE",
            )
            self._failed_at = time.monotonic()
            return self.last_error

        if not isinstance(payload, list):
            logger.error(f"Resposta inesperada do catálogo CNAE: type={type(payload).__name__}")
            self._items = []
            self.last_error = LookupResult.failure(
                ErrorKind.LOOKUP_TRANSPORT_ERROR,
                "Resposta inválida do catálogo CNAE",
            )
            self._failed_at = time.monotonic()
            return self.last_error

        self._items = deduplicate(payload)
        self.last_error = None
        self._failed_at = None
        logger.info(f"Catálogo CNAE carregado: {len(self._items)} itens únicos (de {len(payload)})")
        return LookupResult.success({"count": len(self._items)})

    def items(self) -> List[CnaeActivity]:
        self.load()
        return list(self._items or [])

    def search(self, query: Optional[str], limit: Optional[int] = None) -> List[CnaeActivity]:
        """
        Filtra por substring (sem diferenciar maiúsculas) no id e na descrição.
        Consulta vazia devolve o catálogo inteiro.
        """
        items = self.items()
        needle = (query or "").strip().casefold()
        if needle:
            items = [
                item for item in items
                if needle in item.id.casefold() or needle in item.description.casefold()
            ]
        if limit is not None:
            items = items[:limit]
        return items

    def display(self, activity_id: str) -> str:
        """
        Texto de exibição "id - descrição", ou o próprio id se desconhecido.
        """
        for item in self.items():
            if item.id == activity_id:
                return item.display()
        return activity_id
