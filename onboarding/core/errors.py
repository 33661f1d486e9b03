"""
Taxonomia de erros do cadastro.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ErrorKind(str, Enum):
    """
    Tipos de erro reportados ao usuário.

    Os quatro primeiros bloqueiam o avanço de etapa; os de consulta
    externa são apenas avisos e nunca impedem a submissão.
    """
    FIELD_REQUIRED = "FieldRequired"
    INVALID_FORMAT = "InvalidFormat"
    INVALID_OPTION = "InvalidOption"
    OUT_OF_RANGE = "OutOfRange"
    INVALID_INPUT = "InvalidInput"
    LOOKUP_NOT_FOUND = "LookupNotFound"
    LOOKUP_TRANSPORT_ERROR = "LookupTransportError"


@dataclass(frozen=True)
class FieldError:
    field: str
    kind: ErrorKind
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "kind": self.kind.value, "message": self.message}


class OnboardingError(Exception):
    """Classe base para exceções do cadastro"""
    pass


class RegistrationClosedError(OnboardingError):
    """O cadastro já foi submetido; é preciso reiniciar antes de continuar"""
    pass


class StepMismatchError(OnboardingError):
    """Submissão para uma etapa que não é a atual"""
    pass


class SubmissionError(OnboardingError):
    """Falha ao entregar o cadastro completo ao destino final"""
    pass


class SessionNotFoundError(OnboardingError):
    """Sessão de cadastro inexistente ou expirada"""
    pass
