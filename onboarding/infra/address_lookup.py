import logging
from typing import Optional

import requests

from ..config import AppConfig
from ..core.errors import ErrorKind
from ..core.formatters import format_cep, only_digits
from ..core.lookups import LookupResult

logger = logging.getLogger(__name__)


class ViaCepClient:
    """
    Consulta de endereço por CEP no ViaCEP.

    Nunca levanta exceção: CEP inválido, CEP inexistente e falha de rede
    viram LookupResult com o tipo de erro correspondente.
    """

    def __init__(self, config: AppConfig, http: Optional[requests.Session] = None) -> None:
        self._base_url = config.viacep_base_url.rstrip("/")
        self._timeout_s = config.lookup_timeout_s
        self._http = http or requests.Session()

    def lookup(self, cep: str) -> LookupResult:
        """
        Busca o endereço de um CEP de 8 dígitos.

        Returns:
            LookupResult com street/neighborhood/city/state/country/zipCode
        """
        digits = only_digits(cep)
        if len(digits) != 8:
            return LookupResult.failure(ErrorKind.INVALID_INPUT, "O CEP deve conter 8 dígitos")

        url = f"{self._base_url}/{digits}/json/"
        try:
            response = self._http.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self._timeout_s,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.warning(f"Falha ao consultar ViaCEP: cep={digits}, error={type(e).__name__}: {e}")
            return LookupResult.failure(ErrorKind.LOOKUP_TRANSPORT_ERROR, "Erro ao buscar o endereço")
        except ValueError as e:
            logger.warning(f"Resposta não-JSON do ViaCEP: cep={digits}, error={e}")
            return LookupResult.failure(ErrorKind.LOOKUP_TRANSPORT_ERROR, "Resposta inválida do serviço de CEP")

        if not isinstance(payload, dict):
            logger.warning(f"Resposta inesperada do ViaCEP: cep={digits}, type={type(payload).__name__}")
            return LookupResult.failure(ErrorKind.LOOKUP_TRANSPORT_ERROR, "Resposta inválida do serviço de CEP")

        # ViaCEP responde {"erro": true} (ou "true") para CEP inexistente
        if str(payload.get("erro", "")).lower() == "true":
            logger.info(f"CEP não encontrado: cep={digits}")
            return LookupResult.failure(ErrorKind.LOOKUP_NOT_FOUND, "CEP não encontrado")

        address = {
            "zipCode": format_cep(digits),
            "street": payload.get("logradouro") or "",
            "neighborhood": payload.get("bairro") or "",
            "city": payload.get("localidade") or "",
            "state": (payload.get("uf") or "").upper(),
            "country": "BR",
        }
        logger.debug(f"CEP encontrado: cep={digits}, city={address['city']}, state={address['state']}")
        return LookupResult.success(address)
