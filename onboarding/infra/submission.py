import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional
from uuid import uuid4

import requests

from ..config import AppConfig
from ..core.errors import SubmissionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionReceipt:
    """
    Comprovante devolvido após a entrega do cadastro completo.
    """
    reference: str
    delivered: bool  # False quando apenas registrado em log (modo dev)


def to_jsonable(value: Any) -> Any:
    """
    Converte recursivamente datas em ISO 8601 para envio em JSON.
    """
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


class SubmissionService:
    """
    Entrega o cadastro completo ao destino final.
    Em desenvolvimento (SUBMISSION_URL=dev-log), apenas loga.
    """

    def __init__(self, config: AppConfig, http: Optional[requests.Session] = None) -> None:
        self._config = config
        self._http = http or requests.Session()

    def submit(self, record: Dict[str, Dict[str, Any]]) -> SubmissionReceipt:
        """
        Envia o cadastro completo (todas as seções validadas).

        Raises:
            SubmissionError: falha de rede ou resposta HTTP de erro do destino
        """
        if not record:
            logger.error("Tentativa de submissão de cadastro vazio")
            raise ValueError("record não pode estar vazio")

        payload = to_jsonable(record)

        if self._config.submission_url == "dev-log":
            reference = uuid4().hex[:12]
            logger.warning(
                f"⚠️ MODO DEV: cadastro NÃO foi enviado (apenas simulado). "
                f"Para enviar de verdade, configure SUBMISSION_URL no .env. "
                f"reference={reference}, sections={list(payload.keys())}"
            )
            logger.debug(f"Cadastro (FAKE): {json.dumps(payload, ensure_ascii=False, indent=2)}")
            return SubmissionReceipt(reference=reference, delivered=False)

        try:
            logger.info(
                f"Enviando cadastro: url={self._config.submission_url}, "
                f"sections={list(payload.keys())}"
            )
            response = self._http.post(
                self._config.submission_url,
                json=payload,
                headers={"Accept": "application/json"},
                timeout=self._config.submission_timeout_s,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(
                f"Erro ao enviar cadastro: url={self._config.submission_url}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            raise SubmissionError(f"Falha ao enviar cadastro: {e}") from e

        reference = None
        try:
            body = response.json()
            if isinstance(body, dict):
                reference = body.get("id") or body.get("reference")
        except ValueError:
            logger.debug("Resposta da submissão sem corpo JSON")

        reference = str(reference) if reference else uuid4().hex[:12]
        logger.info(f"✅ Cadastro entregue com sucesso: reference={reference}")
        return SubmissionReceipt(reference=reference, delivered=True)
