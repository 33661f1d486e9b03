import copy
from enum import Enum
from typing import Any, Dict, List, Optional

from .sections import SectionName


class StepStatus(str, Enum):
    """
    Situação de cada etapa, usada pelo indicador de progresso.
    """
    COMPLETED = "completed"
    CURRENT = "current"
    PENDING = "pending"


class RegistrationRecord:
    """
    Dados validados acumulados ao longo das etapas.

    Só contém seções de etapas já concluídas. Cada seção é substituída
    por inteiro (nunca parcialmente) e toda leitura devolve uma cópia,
    de modo que edições no formulário não alteram o registro até
    uma nova submissão validada.
    """

    def __init__(self) -> None:
        self._sections: Dict[str, Dict[str, Any]] = {}

    def replace(self, section: SectionName, data: Dict[str, Any]) -> None:
        self._sections[section.value] = copy.deepcopy(data)

    def get(self, section: SectionName) -> Optional[Dict[str, Any]]:
        data = self._sections.get(section.value)
        return copy.deepcopy(data) if data is not None else None

    def has(self, section: SectionName) -> bool:
        return section.value in self._sections

    def section_names(self) -> List[str]:
        return list(self._sections.keys())

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegistrationRecord):
            return NotImplemented
        return self._sections == other._sections

    def __repr__(self) -> str:
        return f"RegistrationRecord(sections={self.section_names()})"
