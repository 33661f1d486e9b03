"""Testes da máquina de etapas do cadastro."""

import threading
import time
from datetime import date

import pytest

from conftest import FIXED_TODAY, FakeSubmissionService
from onboarding.core.errors import ErrorKind, RegistrationClosedError, StepMismatchError
from onboarding.core.registration_state import RegistrationRecord, StepStatus
from onboarding.core.sections import SectionName
from onboarding.core.step_controller import StepController


@pytest.fixture
def controller(submission_service, notifier):
    return StepController(
        submission_service=submission_service,
        notifier=notifier,
        today=lambda: FIXED_TODAY,
    )


def complete_until(controller, sections, last_index):
    for index in range(last_index + 1):
        outcome = controller.submit_step(sections[index])
        assert outcome.accepted, outcome.errors


class TestNavigation:
    """Testes de avanço, retorno e salto entre etapas."""

    def test_initial_state(self, controller):
        assert controller.current_index == 0
        assert controller.highest_completed == -1
        assert controller.record == {}
        assert controller.step_statuses() == [StepStatus.CURRENT] + [StepStatus.PENDING] * 6

    def test_valid_company_advances(self, controller, sections):
        """Testa que a seção válida é gravada e a etapa avança."""
        raw = dict(sections[0], documentNumber="11.222.333/0001-81")
        outcome = controller.submit_step(raw)

        assert outcome.accepted is True
        assert outcome.current_index == 1
        assert controller.record["company"]["documentNumber"] == "11.222.333/0001-81"
        assert controller.record["company"]["openingDate"] == date(2015, 3, 10)
        assert controller.step_statuses()[:2] == [StepStatus.COMPLETED, StepStatus.CURRENT]

    def test_invalid_section_keeps_step_and_record(self, controller, sections):
        """Testa que a seção inválida não altera a etapa nem o registro."""
        raw = dict(sections[0], documentNumber="123")
        outcome = controller.submit_step(raw)

        assert outcome.accepted is False
        assert outcome.current_index == 0
        assert [(e.field, e.kind) for e in outcome.errors] == [("documentNumber", ErrorKind.INVALID_FORMAT)]
        assert controller.record == {}

    def test_invalid_resubmit_keeps_completed_section(self, controller, sections):
        """Testa que reenviar uma etapa concluída com erro não altera o registro."""
        complete_until(controller, sections, 1)
        before = controller.record
        controller.go_back()
        controller.go_back()

        outcome = controller.submit_step(dict(sections[0], documentNumber="11.222.333/0001-82", legalName=""))
        assert outcome.accepted is False
        assert controller.current_index == 0
        assert controller.record == before
        assert controller.record["company"]["documentNumber"] == "11.222.333/0001-81"

    def test_mandatory_anticipation_without_amount_stays_on_fees(self, controller, sections):
        """Testa que a etapa de taxas não avança sem o percentual de antecipação."""
        complete_until(controller, sections, 4)
        assert controller.current_index == 5

        outcome = controller.submit_step({"anticipationType": "mandatory", "anticipationPeriodicity": "daily"})
        assert outcome.accepted is False
        assert [(e.field, e.kind) for e in outcome.errors] == [("anticipationAmount", ErrorKind.FIELD_REQUIRED)]
        assert controller.current_index == 5
        assert "fees" not in controller.record

    def test_go_back_and_resubmit(self, controller, sections):
        """Testa voltar, editar e reenviar uma etapa concluída."""
        complete_until(controller, sections, 1)
        assert controller.current_index == 2

        assert controller.go_back() is True
        assert controller.go_back() is True
        assert controller.current_index == 0

        prefill = controller.prefill()
        assert prefill["fantasyName"] == "Padaria Central"

        prefill["fantasyName"] = "Padaria Nova"
        outcome = controller.submit_step(prefill)
        assert outcome.accepted
        assert controller.current_index == 1
        assert controller.record["company"]["fantasyName"] == "Padaria Nova"
        assert controller.record["responsible"]["name"] == "Maria da Silva"

    def test_back_then_resubmit_reproduces_section(self, controller, sections):
        """Testa que voltar e reenviar sem alterações mantém a mesma seção."""
        complete_until(controller, sections, 0)
        before = controller.record

        controller.go_back()
        controller.submit_step(controller.prefill())
        assert controller.record == before
        assert controller.current_index == 1

    def test_going_back_does_not_clear_record(self, controller, sections):
        complete_until(controller, sections, 0)
        controller.go_back()
        assert controller.record["company"]["legalName"] == sections[0]["legalName"]

    def test_go_back_on_first_step(self, controller):
        assert controller.go_back() is False
        assert controller.current_index == 0

    def test_jump_limits(self, controller, sections):
        """Testa que só é possível saltar até a maior etapa concluída + 1."""
        assert controller.jump_to(1) is False
        assert controller.jump_to(-1) is False

        complete_until(controller, sections, 2)
        assert controller.jump_to(0) is True
        assert controller.current_index == 0
        assert controller.jump_to(3) is True
        assert controller.jump_to(4) is False
        assert controller.current_index == 3

    def test_prefill_returns_copy(self, controller, sections):
        complete_until(controller, sections, 0)
        controller.go_back()
        prefill = controller.prefill()
        prefill["fantasyName"] = "Alterado"
        assert controller.record["company"]["fantasyName"] == "Padaria Central"

    def test_prefill_defaults(self, controller):
        assert controller.prefill(5) == {
            "anticipationType": "none",
            "anticipationPeriodicity": "",
            "anticipationAmount": "",
        }

    def test_record_is_a_copy(self, controller, sections):
        complete_until(controller, sections, 0)
        record = controller.record
        record["company"]["fantasyName"] = "Alterado"
        assert controller.record["company"]["fantasyName"] == "Padaria Central"

    def test_step_mismatch(self, controller, sections):
        with pytest.raises(StepMismatchError):
            controller.submit_step(sections[1], index=1)


class TestFinalSubmission:
    """Testes da submissão do cadastro completo."""

    def test_submits_once_with_all_sections(self, controller, sections, submission_service, notifier):
        """Testa que a última etapa entrega o registro completo uma única vez."""
        complete_until(controller, sections, 5)
        outcome = controller.submit_step(sections[6])

        assert outcome.accepted and outcome.submitted
        assert outcome.receipt.reference == "REF-1"
        assert controller.is_submitted
        assert len(submission_service.submitted) == 1
        assert set(submission_service.submitted[0]) == {name.value for name in SectionName}
        assert [m.level for m in notifier.messages] == ["success"]
        assert controller.step_statuses() == [StepStatus.COMPLETED] * 7

    def test_closed_after_submission(self, controller, sections, submission_service):
        """Testa que o fluxo fica encerrado até o reset."""
        complete_until(controller, sections, 6)

        with pytest.raises(RegistrationClosedError):
            controller.submit_step(sections[6])
        with pytest.raises(RegistrationClosedError):
            controller.go_back()
        with pytest.raises(RegistrationClosedError):
            controller.jump_to(0)
        assert len(submission_service.submitted) == 1

        controller.reset()
        assert controller.current_index == 0
        assert controller.record == {}
        assert controller.is_submitted is False
        assert controller.submit_step(sections[0]).accepted

    def test_submission_failure_keeps_last_step(self, failing_submission_service, notifier, sections):
        """Testa que a falha na entrega mantém a última etapa e o registro."""
        controller = StepController(
            submission_service=failing_submission_service,
            notifier=notifier,
            today=lambda: FIXED_TODAY,
        )
        complete_until(controller, sections, 5)
        outcome = controller.submit_step(sections[6])

        assert outcome.accepted is True
        assert outcome.submitted is False
        assert outcome.submission_error
        assert controller.current_index == 6
        assert controller.is_submitted is False
        assert "operation" in controller.record
        assert notifier.messages[-1].level == "error"


    def test_concurrent_final_submit_delivers_once(self, notifier, sections):
        """Testa que dois envios simultâneos da última etapa entregam o cadastro uma única vez."""

        class SlowSubmissionService(FakeSubmissionService):
            def submit(self, record):
                time.sleep(0.2)
                return super().submit(record)

        service = SlowSubmissionService()
        controller = StepController(
            submission_service=service,
            notifier=notifier,
            today=lambda: FIXED_TODAY,
        )
        complete_until(controller, sections, 5)

        outcomes = []
        errors = []

        def submit_last_step():
            try:
                outcomes.append(controller.submit_step(sections[6]))
            except RegistrationClosedError as e:
                errors.append(e)

        threads = [threading.Thread(target=submit_last_step) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(service.submitted) == 1
        assert len(outcomes) == 1 and outcomes[0].submitted
        assert len(errors) == 1


class TestRegistrationRecord:
    def test_replace_whole_section(self):
        record = RegistrationRecord()
        record.replace(SectionName.FEES, {"anticipationType": "mandatory", "anticipationAmount": "2"})
        record.replace(SectionName.FEES, {"anticipationType": "none"})
        assert record.get(SectionName.FEES) == {"anticipationType": "none"}
        assert len(record) == 1

    def test_get_missing_section(self):
        assert RegistrationRecord().get(SectionName.COMPANY) is None
