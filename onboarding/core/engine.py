import logging
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import requests

from .address_autofill import AddressAutofill, AutofillOutcome
from .notifier import CollectingNotifier, NotifierMessage
from .sections import FORMATTERS, STEPS
from .session_manager import InMemorySessionManager, OnboardingSession
from .step_controller import StepController, StepOutcome
from ..config import AppConfig
from ..infra.address_lookup import ViaCepClient
from ..infra.cnae_catalog import CnaeActivity, CnaeCatalog
from ..infra.submission import SubmissionService

logger = logging.getLogger(__name__)


class OnboardingEngine:
    """
    Núcleo do cadastro.

    - Cria e recupera sessões de preenchimento
    - Encaminha submissões e navegação ao StepController da sessão
    - Compartilha entre sessões os clientes das consultas externas
      (o catálogo CNAE é buscado uma única vez para todo o processo)
    - Monta o retrato da sessão devolvido pela API
    """

    def __init__(
        self,
        config: AppConfig,
        http: Optional[requests.Session] = None,
        submission_service: Optional[SubmissionService] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._config = config
        self._today = today
        http = http or requests.Session()

        self._submission_service = submission_service or SubmissionService(config, http=http)
        self._address_client = ViaCepClient(config, http=http)
        self._cnae_catalog = CnaeCatalog(config, http=http)
        self._sessions = InMemorySessionManager(
            session_factory=self._create_session,
            max_active=config.session_max_active,
        )
        logger.info(
            f"OnboardingEngine inicializado: env={config.env}, "
            f"submission={'dev-log' if config.submission_url == 'dev-log' else 'http'}, "
            f"steps={len(STEPS)}"
        )

    def _create_session(self, session_id: str) -> OnboardingSession:
        notifier = CollectingNotifier()
        controller = StepController(
            submission_service=self._submission_service,
            notifier=notifier,
            today=self._today,
        )
        autofill = AddressAutofill(self._address_client, notifier=notifier)
        return OnboardingSession(
            session_id=session_id,
            controller=controller,
            notifier=notifier,
            autofill=autofill,
        )

    @property
    def cnae_catalog(self) -> CnaeCatalog:
        return self._cnae_catalog

    def list_steps(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": step.id,
                "title": step.title,
                "description": step.description,
                "section": step.section.value,
                "fields": [
                    {
                        "name": name,
                        "label": rule.label,
                        "kind": rule.kind.value,
                        "required": rule.required and rule.required_when is None,
                        "options": list(rule.options.keys()) if rule.options else None,
                    }
                    for name, rule in step.schema.fields.items()
                ],
            }
            for step in STEPS
        ]

    def start_session(self) -> OnboardingSession:
        return self._sessions.create()

    def get_session(self, session_id: str) -> OnboardingSession:
        return self._sessions.get(session_id)

    def snapshot(self, session: OnboardingSession) -> Dict[str, Any]:
        """
        Retrato da sessão: etapa atual, progresso, registro e pré-preenchimento.
        """
        controller = session.controller
        return {
            "session_id": session.session_id,
            "current_index": controller.current_index,
            "current_section": controller.current_step.section.value,
            "highest_completed": controller.highest_completed,
            "submitted": controller.is_submitted,
            "statuses": [status.value for status in controller.step_statuses()],
            "record": controller.record,
            "prefill": controller.prefill(),
        }

    def submit_step(
        self,
        session_id: str,
        raw_section: Mapping[str, Any],
        index: Optional[int] = None,
    ) -> Tuple[StepOutcome, Dict[str, Any]]:
        session = self._sessions.get(session_id)
        outcome = session.controller.submit_step(raw_section, index=index)
        return outcome, self.snapshot(session)

    def go_back(self, session_id: str) -> Dict[str, Any]:
        session = self._sessions.get(session_id)
        session.controller.go_back()
        return self.snapshot(session)

    def jump_to(self, session_id: str, target_index: int) -> Tuple[bool, Dict[str, Any]]:
        session = self._sessions.get(session_id)
        moved = session.controller.jump_to(target_index)
        return moved, self.snapshot(session)

    def reset(self, session_id: str) -> Dict[str, Any]:
        session = self._sessions.get(session_id)
        session.controller.reset()
        logger.info(f"Sessão reiniciada: session_id={session_id}")
        return self.snapshot(session)

    def lookup_zip_code(
        self,
        session_id: str,
        zip_code: str,
        draft: Optional[Mapping[str, Any]] = None,
        explicit: bool = True,
    ) -> AutofillOutcome:
        session = self._sessions.get(session_id)
        if explicit:
            return session.autofill.lookup(zip_code, draft)
        return session.autofill.on_zip_code_typed(zip_code, draft)

    def drain_messages(self, session_id: str) -> List[NotifierMessage]:
        session = self._sessions.get(session_id)
        return session.notifier.drain()

    def search_cnae(self, query: Optional[str], limit: Optional[int] = None) -> List[CnaeActivity]:
        return self._cnae_catalog.search(query, limit=limit)

    def format_value(self, kind: str, value: str) -> str:
        """
        Aplica um formatador pelo nome (cnpj, cpf, cep, phone, agency, account, ...).

        Raises:
            KeyError: formatador desconhecido
        """
        formatter = FORMATTERS[kind.lower()]
        return formatter(value)
