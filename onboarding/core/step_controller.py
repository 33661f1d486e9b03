import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .errors import FieldError, RegistrationClosedError, StepMismatchError, SubmissionError
from .formatters import mask_document
from .notifier import LoggingNotifier, Notifier
from .registration_state import RegistrationRecord, StepStatus
from .sections import STEPS, StepDefinition
from ..infra.submission import SubmissionReceipt, SubmissionService

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """
    Resultado de uma submissão de etapa.
    Não é a resposta final ao usuário, é um "guia" para a camada de apresentação.
    """
    # Se a seção passou na validação e foi gravada no registro
    accepted: bool
    # Índice da etapa ativa depois da submissão
    current_index: int
    # Erros por campo (vazio quando aceita)
    errors: List[FieldError] = field(default_factory=list)
    # Se o cadastro completo foi entregue e o fluxo encerrado
    submitted: bool = False
    receipt: Optional[SubmissionReceipt] = None
    # Falha ao entregar o cadastro na última etapa (o registro fica intacto)
    submission_error: Optional[str] = None


class StepController:
    """
    Máquina de estados do formulário em etapas.

    Mantém o índice da etapa atual e o RegistrationRecord, valida cada
    seção submetida e, na última etapa, entrega o cadastro completo ao
    serviço de submissão. Depois disso o fluxo fica encerrado até reset().
    """

    def __init__(
        self,
        submission_service: SubmissionService,
        notifier: Optional[Notifier] = None,
        steps: Sequence[StepDefinition] = STEPS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._submission_service = submission_service
        self._notifier = notifier or LoggingNotifier()
        self._steps = tuple(steps)
        self._today = today
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        """
        Volta ao estado inicial: etapa 0 e registro vazio.
        """
        with self._lock:
            self._record = RegistrationRecord()
            self._current_index = 0
            self._highest_completed = -1
            self._submitted = False
        logger.debug("StepController reiniciado")

    @property
    def steps(self) -> Sequence[StepDefinition]:
        return self._steps

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_step(self) -> StepDefinition:
        return self._steps[self._current_index]

    @property
    def highest_completed(self) -> int:
        return self._highest_completed

    @property
    def is_submitted(self) -> bool:
        return self._submitted

    @property
    def record(self) -> Dict[str, Dict[str, Any]]:
        """Cópia do registro (nunca a instância interna)."""
        return self._record.to_dict()

    def _ensure_open(self, action: str) -> None:
        if self._submitted:
            logger.warning(f"Ação '{action}' recusada: cadastro já submetido")
            raise RegistrationClosedError(
                "O cadastro já foi submetido. Reinicie para preencher um novo."
            )

    def prefill(self, index: Optional[int] = None) -> Dict[str, Any]:
        """
        Dados para preencher o formulário de uma etapa.

        Se a etapa já foi concluída, devolve uma cópia da seção gravada;
        senão, os valores padrão da seção.
        """
        step = self._steps[self._current_index if index is None else index]
        saved = self._record.get(step.section)
        if saved is None:
            return step.schema.defaults()
        prefill = step.schema.defaults()
        prefill.update(saved)
        return prefill

    def submit_step(
        self,
        raw_section: Mapping[str, Any],
        index: Optional[int] = None,
    ) -> StepOutcome:
        """
        Valida a seção da etapa atual e avança.

        Em caso de erro permanece na etapa e o registro não é alterado.
        Na última etapa, entrega o registro completo ao serviço de submissão.

        Raises:
            RegistrationClosedError: cadastro já submetido
            StepMismatchError: index informado não é a etapa atual
        """
        # Uma submissão por vez: a entrega final acontece com o lock retido
        with self._lock:
            return self._submit_step(raw_section, index)

    def _submit_step(
        self,
        raw_section: Mapping[str, Any],
        index: Optional[int],
    ) -> StepOutcome:
        self._ensure_open("submit_step")
        if index is not None and index != self._current_index:
            raise StepMismatchError(
                f"Submissão para a etapa {index}, mas a etapa atual é {self._current_index}"
            )

        step = self.current_step
        result = step.schema.validate(raw_section, today=self._today())

        if not result.ok:
            logger.warning(
                f"Etapa rejeitada: step={step.id}, section={step.section.value}, "
                f"errors={[(e.field, e.kind.value) for e in result.errors]}"
            )
            return StepOutcome(
                accepted=False,
                current_index=self._current_index,
                errors=result.errors,
            )

        self._record.replace(step.section, result.data)
        self._highest_completed = max(self._highest_completed, step.id)
        document = result.data.get("documentNumber") or result.data.get("cpf")
        logger.info(
            f"Etapa concluída: step={step.id}, section={step.section.value}, "
            f"document={mask_document(document) or '-'}"
        )

        if self._current_index < len(self._steps) - 1:
            self._current_index += 1
            return StepOutcome(accepted=True, current_index=self._current_index)

        return self._submit_record()

    def _submit_record(self) -> StepOutcome:
        """
        Entrega o registro completo. Em caso de falha, permanece na última
        etapa com o registro intacto para que o usuário tente novamente.
        """
        try:
            receipt = self._submission_service.submit(self._record.to_dict())
        except SubmissionError as e:
            logger.error(f"Falha na submissão do cadastro: error={e}")
            self._notifier.error(
                "Registration could not be submitted",
                "Please try again in a few minutes.",
            )
            return StepOutcome(
                accepted=True,
                current_index=self._current_index,
                submission_error=str(e),
            )

        self._submitted = True
        logger.info(f"Cadastro submetido: reference={receipt.reference}, delivered={receipt.delivered}")
        self._notifier.success(
            "Registration submitted successfully!",
            "We will review your information and contact you soon.",
        )
        return StepOutcome(
            accepted=True,
            current_index=self._current_index,
            submitted=True,
            receipt=receipt,
        )

    def go_back(self) -> bool:
        """
        Volta uma etapa sem alterar o registro.
        Retorna False (sem efeito) na primeira etapa.
        """
        with self._lock:
            self._ensure_open("go_back")
            if self._current_index == 0:
                return False
            self._current_index -= 1
            logger.debug(f"Voltando para a etapa {self._current_index}")
            return True

    def jump_to(self, target_index: int) -> bool:
        """
        Navega diretamente para uma etapa já liberada (até a maior etapa
        concluída + 1). Fora disso, não faz nada e retorna False.
        """
        with self._lock:
            self._ensure_open("jump_to")
            limit = min(self._highest_completed + 1, len(self._steps) - 1)
            if target_index < 0 or target_index > limit:
                logger.debug(f"Navegação ignorada: target={target_index}, limit={limit}")
                return False
            self._current_index = target_index
            return True

    def step_statuses(self) -> List[StepStatus]:
        statuses = []
        for step in self._steps:
            if step.id == self._current_index and not self._submitted:
                statuses.append(StepStatus.CURRENT)
            elif self._record.has(step.section):
                statuses.append(StepStatus.COMPLETED)
            else:
                statuses.append(StepStatus.PENDING)
        return statuses
