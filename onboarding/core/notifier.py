"""
Notificações exibidas ao usuário (sucesso/erro).

O controlador de etapas e as consultas externas recebem um Notifier por
injeção, em vez de disparar avisos globais.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifierMessage:
    level: str  # "success" ou "error"
    title: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "title": self.title, "description": self.description}


class Notifier(ABC):
    """
    Classe base abstrata para canais de notificação ao usuário.
    """

    @abstractmethod
    def success(self, title: str, description: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def error(self, title: str, description: Optional[str] = None) -> None:
        pass


class LoggingNotifier(Notifier):
    """
    Apenas registra as notificações no log.
    """

    def success(self, title: str, description: Optional[str] = None) -> None:
        logger.info(f"Notificação de sucesso: title={title}, description={description}")

    def error(self, title: str, description: Optional[str] = None) -> None:
        logger.warning(f"Notificação de erro: title={title}, description={description}")


class CollectingNotifier(LoggingNotifier):
    """
    Guarda as notificações em memória para que a camada HTTP as devolva ao cliente.
    """

    def __init__(self) -> None:
        self.messages: List[NotifierMessage] = []

    def success(self, title: str, description: Optional[str] = None) -> None:
        super().success(title, description)
        self.messages.append(NotifierMessage("success", title, description))

    def error(self, title: str, description: Optional[str] = None) -> None:
        super().error(title, description)
        self.messages.append(NotifierMessage("error", title, description))

    def drain(self) -> List[NotifierMessage]:
        """
        Retorna e limpa as mensagens acumuladas.
        """
        messages, self.messages = self.messages, []
        return messages
