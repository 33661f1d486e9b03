import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import ErrorKind
from .formatters import format_cep, only_digits
from .lookups import LatestRequestTracker, LookupResult
from .notifier import LoggingNotifier, Notifier
from ..infra.address_lookup import ViaCepClient

logger = logging.getLogger(__name__)

ZIP_CODE_FIELD = "zipCode"

_ADVISORIES = {
    ErrorKind.INVALID_INPUT: ("CEP inválido", "O CEP deve conter 8 dígitos"),
    ErrorKind.LOOKUP_NOT_FOUND: ("CEP não encontrado", "Verifique o CEP e tente novamente"),
    ErrorKind.LOOKUP_TRANSPORT_ERROR: ("Erro ao buscar o endereço", "Tente novamente ou preencha manualmente"),
}


@dataclass
class AutofillOutcome:
    """
    Resultado do preenchimento automático do endereço.

    Attributes:
        draft: Rascunho do endereço (preenchido apenas se a consulta achou o CEP)
        result: Resultado da consulta, ou None se nenhuma consulta foi feita
        stale: A resposta chegou depois de uma consulta mais nova e foi descartada
    """
    draft: Dict[str, Any] = field(default_factory=dict)
    result: Optional[LookupResult] = None
    stale: bool = False


class AddressAutofill:
    """
    Liga o campo de CEP à consulta de endereço.

    Ao completar 8 dígitos a consulta é disparada. Falhas viram avisos
    (não bloqueiam a etapa) e deixam o rascunho como o usuário digitou.
    """

    def __init__(
        self,
        client: ViaCepClient,
        notifier: Optional[Notifier] = None,
        tracker: Optional[LatestRequestTracker] = None,
    ) -> None:
        self._client = client
        self._notifier = notifier or LoggingNotifier()
        self._tracker = tracker or LatestRequestTracker()

    def on_zip_code_typed(self, raw_cep: str, draft: Optional[Mapping[str, Any]] = None) -> AutofillOutcome:
        """
        Formata o CEP a cada tecla e consulta o endereço quando houver 8 dígitos.
        Com menos dígitos não há consulta nem aviso, mas qualquer consulta
        ainda em andamento deixa de valer para o campo.
        """
        updated = dict(copy.deepcopy(draft or {}))
        updated[ZIP_CODE_FIELD] = format_cep(raw_cep)

        if len(only_digits(raw_cep)) < 8:
            self._tracker.issue(ZIP_CODE_FIELD)
            return AutofillOutcome(draft=updated)
        return self.lookup(raw_cep, updated)

    def lookup(self, raw_cep: str, draft: Optional[Mapping[str, Any]] = None) -> AutofillOutcome:
        """
        Consulta explícita (ex: botão de busca). CEP inválido gera aviso InvalidInput.
        """
        ticket = self._tracker.issue(ZIP_CODE_FIELD)
        original = dict(copy.deepcopy(draft or {}))
        result = self._client.lookup(raw_cep)

        if not self._tracker.is_latest(ZIP_CODE_FIELD, ticket):
            logger.debug(f"Resposta de CEP descartada (consulta mais nova em andamento): ticket={ticket}")
            return AutofillOutcome(draft=original, result=result, stale=True)

        if not result.found:
            title, description = _ADVISORIES.get(
                result.error_kind,
                _ADVISORIES[ErrorKind.LOOKUP_TRANSPORT_ERROR],
            )
            self._notifier.error(title, description)
            return AutofillOutcome(draft=original, result=result)

        updated = dict(original)
        updated.update(result.data or {})
        self._notifier.success(
            "Endereço encontrado!",
            "Os campos foram preenchidos automaticamente",
        )
        return AutofillOutcome(draft=updated, result=result)
