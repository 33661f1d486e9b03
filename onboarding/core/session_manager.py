import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable
from uuid import uuid4

from .address_autofill import AddressAutofill
from .errors import SessionNotFoundError
from .notifier import CollectingNotifier
from .step_controller import StepController

logger = logging.getLogger(__name__)


@dataclass
class OnboardingSession:
    """
    Estado de um preenchimento do cadastro por um usuário.
    Guardado apenas em memória (não há persistência entre sessões).
    """
    session_id: str
    controller: StepController
    notifier: CollectingNotifier
    autofill: AddressAutofill
    created_at: datetime = field(default_factory=datetime.now)


class InMemorySessionManager:
    """
    Gerenciador simples de sessões em memória.
    Acima de max_active sessões, as mais antigas são descartadas.
    """

    def __init__(
        self,
        session_factory: Callable[[str], OnboardingSession],
        max_active: int = 500,
    ) -> None:
        self._sessions: "OrderedDict[str, OnboardingSession]" = OrderedDict()
        self._session_factory = session_factory
        self._max_active = max_active

    def create(self) -> OnboardingSession:
        session_id = uuid4().hex[:16]
        session = self._session_factory(session_id)
        self._sessions[session_id] = session
        logger.info(f"Nova sessão de cadastro criada: session_id={session_id}")

        while len(self._sessions) > self._max_active:
            old_id, _ = self._sessions.popitem(last=False)
            logger.debug(f"Sessão descartada por limite: session_id={old_id}, max_active={self._max_active}")
        return session

    def get(self, session_id: str) -> OnboardingSession:
        session = self._sessions.get(session_id)
        if session is None:
            logger.debug(f"Sessão não encontrada: session_id={session_id}")
            raise SessionNotFoundError(f"Sessão não encontrada: {session_id}")
        return session

    def __len__(self) -> int:
        return len(self._sessions)
