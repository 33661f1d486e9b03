"""Fixtures compartilhadas dos testes do cadastro."""

from datetime import date
from typing import Any, Dict, List, Optional

import pytest
import requests

from onboarding.config import AppConfig
from onboarding.core.errors import SubmissionError
from onboarding.core.notifier import CollectingNotifier
from onboarding.infra.submission import SubmissionReceipt

FIXED_TODAY = date(2025, 1, 15)

VIACEP_URL = "https://viacep.test/ws"
IBGE_URL = "https://ibge.test/api/v2/cnae/subclasses"


class FakeResponse:
    """Resposta mínima no formato de requests.Response."""

    def __init__(self, payload: Any = None, status_code: int = 200, invalid_json: bool = False):
        self._payload = payload
        self.status_code = status_code
        self._invalid_json = invalid_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeHttp:
    """
    Substitui requests.Session: as respostas são registradas por prefixo
    de URL e cada chamada fica guardada em `calls`.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Any] = {}
        self.calls: List[Dict[str, Any]] = []

    def route(self, prefix: str, response: Any) -> None:
        self.routes[prefix] = response

    def _dispatch(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response
        raise requests.ConnectionError(f"Sem rota para {url}")

    def get(self, url: str, **kwargs) -> FakeResponse:
        return self._dispatch("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> FakeResponse:
        return self._dispatch("POST", url, **kwargs)

    def calls_to(self, prefix: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["url"].startswith(prefix)]


class FakeSubmissionService:
    """Registra os cadastros recebidos; opcionalmente falha."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.submitted: List[Dict[str, Dict[str, Any]]] = []
        self.error = error

    def submit(self, record: Dict[str, Dict[str, Any]]) -> SubmissionReceipt:
        if self.error is not None:
            raise self.error
        self.submitted.append(record)
        return SubmissionReceipt(reference=f"REF-{len(self.submitted)}", delivered=True)


def valid_sections() -> List[Dict[str, Any]]:
    """Seções válidas, na ordem das etapas, como o usuário digitaria."""
    return [
        {
            "fantasyName": "Padaria Central",
            "legalName": "Padaria Central Comércio de Alimentos LTDA",
            "documentNumber": "11222333000181",
            "establishmentType": "Padaria",
            "cnae": "4721-1/02",
            "openingDate": "2015-03-10",
        },
        {
            "name": "Maria da Silva",
            "cpf": "52998224725",
            "birthDate": "20/06/1985",
            "gender": "female",
        },
        {
            "email": "contato@padariacentral.com.br",
            "phone": "5511987654321",
            "phoneType": "mobile",
        },
        {
            "zipCode": "01310100",
            "street": "Avenida Paulista",
            "number": "1000",
            "complement": "",
            "neighborhood": "Bela Vista",
            "city": "São Paulo",
            "state": "sp",
            "country": "BR",
        },
        {
            "holderName": "Padaria Central Comércio de Alimentos LTDA",
            "holderType": "PJ",
            "holderDocument": "11222333000181",
            "bankCode": "341",
            "agency": "0935-2",
            "accountNumber": "123456",
            "accountType": "checking",
        },
        {
            "anticipationType": "none",
        },
        {
            "paymentMethod": "credit",
            "cardProcessingMethod": "pos",
        },
    ]


@pytest.fixture
def sections() -> List[Dict[str, Any]]:
    return valid_sections()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        viacep_base_url=VIACEP_URL,
        ibge_cnae_url=IBGE_URL,
        lookup_timeout_s=2.0,
    )


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def submission_service() -> FakeSubmissionService:
    return FakeSubmissionService()


@pytest.fixture
def failing_submission_service() -> FakeSubmissionService:
    return FakeSubmissionService(error=SubmissionError("503 Service Unavailable"))
