"""
Motor de validação declarativo das seções do cadastro.

Cada seção é descrita uma única vez por um SectionSchema; formatação e
validação são derivadas dele. Todos os erros da seção são coletados de
uma vez (sem interromper no primeiro) para que o usuário corrija tudo
numa única passada.
"""
import copy
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Pattern, Tuple

from .errors import ErrorKind, FieldError

logger = logging.getLogger(__name__)

MIN_DATE = date(1900, 1, 1)

# Regra entre campos: recebe o valor já validado e a seção normalizada,
# devolve (tipo, mensagem) quando houver violação.
CrossFieldRule = Callable[[Any, Mapping[str, Any]], Optional[Tuple[ErrorKind, str]]]


class FieldKind(str, Enum):
    STRING = "string"
    DATE = "date"
    ENUM = "enum"
    NUMBER = "number"


@dataclass(frozen=True)
class FieldRule:
    """
    Regras de um campo.

    Attributes:
        label: Nome exibido nas mensagens de erro
        required: Campo obrigatório (não vazio após trim)
        kind: Tipo do valor (string, date, enum, number)
        pattern: Regex que o valor formatado deve casar por inteiro
        options: Conjunto fechado de valores aceitos (kind=enum)
        formatter: Normalização aplicada antes de validar
        check: Verificação extra de formato (ex: dígitos verificadores)
        minimum/maximum: Faixa aceita para kind=number
        required_when: Torna o campo obrigatório condicionalmente; quando
            a condição é falsa o campo é ignorado e descartado
        cross_field_rule: Regra que depende de outros campos da seção
        default: Valor de preenchimento inicial da etapa
        format_message: Mensagem de InvalidFormat
    """
    label: str
    required: bool = True
    kind: FieldKind = FieldKind.STRING
    pattern: Optional[Pattern] = None
    options: Optional[Mapping[str, str]] = None
    formatter: Optional[Callable[[str], str]] = None
    check: Optional[Callable[[str], bool]] = None
    minimum: Optional[Decimal] = None
    maximum: Optional[Decimal] = None
    required_when: Optional[Callable[[Mapping[str, Any]], bool]] = None
    cross_field_rule: Optional[CrossFieldRule] = None
    default: Optional[str] = None
    format_message: Optional[str] = None


@dataclass
class ValidationResult:
    data: Optional[Dict[str, Any]] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def parse_date(value: Any) -> Optional[date]:
    """
    Converte date, datetime ou string (YYYY-MM-DD ou DD/MM/YYYY) em date.
    Retorna None se não for uma data de calendário válida.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    # Aceita timestamps ISO enviados por date pickers ("2020-01-31T00:00:00Z")
    if "T" in text:
        text = text.split("T", 1)[0]
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_number(value: Any) -> Optional[Decimal]:
    text = str(value).strip().replace(",", ".")
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


@dataclass(frozen=True)
class SectionSchema:
    """
    Definição única de uma seção (fonte da verdade de campos e regras).
    """
    name: str
    fields: Mapping[str, FieldRule]

    def defaults(self) -> Dict[str, Any]:
        """
        Valores iniciais de uma etapa ainda não preenchida.
        """
        return {
            name: rule.default if rule.default is not None else ""
            for name, rule in self.fields.items()
        }

    def normalize(self, raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Aplica os formatadores e descarta chaves desconhecidas.

        Valores vazios não passam pelo formatador (o telefone, por exemplo,
        devolveria o prefixo padrão e mascararia a ausência do campo).
        """
        raw = raw or {}
        normalized: Dict[str, Any] = {}
        for name, rule in self.fields.items():
            value = raw.get(name)
            if isinstance(value, str):
                value = value.strip()
                if value and rule.formatter is not None:
                    value = rule.formatter(value)
            normalized[name] = value
        return normalized

    def validate(
        self,
        raw: Optional[Mapping[str, Any]],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Normaliza e valida a seção, coletando todos os erros por campo.

        Returns:
            ValidationResult com a seção validada (cópia nova) ou a lista de erros
        """
        today = today or date.today()
        normalized = self.normalize(raw)
        validated: Dict[str, Any] = {}
        errors: List[FieldError] = []

        for name, rule in self.fields.items():
            value = normalized.get(name)

            if rule.required_when is not None:
                required = rule.required_when(normalized)
                if not required:
                    continue
            else:
                required = rule.required

            if _is_empty(value):
                if required:
                    errors.append(FieldError(name, ErrorKind.FIELD_REQUIRED, f"{rule.label} is required"))
                continue

            value, error = self._check_value(name, rule, value, today)
            if error is None and rule.cross_field_rule is not None:
                violation = rule.cross_field_rule(value, normalized)
                if violation is not None:
                    error = FieldError(name, violation[0], violation[1])

            if error is not None:
                errors.append(error)
                continue
            validated[name] = value

        if errors:
            logger.debug(
                f"Seção inválida: section={self.name}, "
                f"errors={[(e.field, e.kind.value) for e in errors]}"
            )
            return ValidationResult(data=None, errors=errors)

        return ValidationResult(data=copy.deepcopy(validated), errors=[])

    def _check_value(
        self,
        name: str,
        rule: FieldRule,
        value: Any,
        today: date,
    ) -> Tuple[Any, Optional[FieldError]]:
        if rule.kind == FieldKind.DATE:
            parsed = parse_date(value)
            if parsed is None:
                return value, FieldError(name, ErrorKind.INVALID_FORMAT, f"{rule.label} must be a valid date")
            if parsed < MIN_DATE or parsed > today:
                return value, FieldError(
                    name,
                    ErrorKind.OUT_OF_RANGE,
                    f"{rule.label} must be between {MIN_DATE.isoformat()} and {today.isoformat()}",
                )
            return parsed, None

        value = str(value)

        if rule.kind == FieldKind.ENUM:
            if rule.options is None or value not in rule.options:
                return value, FieldError(name, ErrorKind.INVALID_OPTION, f"{rule.label} has an unknown option: {value}")
            return value, None

        if rule.kind == FieldKind.NUMBER:
            number = parse_number(value)
            if number is None:
                return value, FieldError(name, ErrorKind.INVALID_FORMAT, f"{rule.label} must be a number")
            if (rule.minimum is not None and number < rule.minimum) or (
                rule.maximum is not None and number > rule.maximum
            ):
                return value, FieldError(
                    name,
                    ErrorKind.OUT_OF_RANGE,
                    f"{rule.label} must be between {rule.minimum} and {rule.maximum}",
                )
            return value.replace(",", "."), None

        message = rule.format_message or f"{rule.label} has an invalid format"
        if rule.pattern is not None and not rule.pattern.fullmatch(value):
            return value, FieldError(name, ErrorKind.INVALID_FORMAT, message)
        if rule.check is not None and not rule.check(value):
            return value, FieldError(name, ErrorKind.INVALID_FORMAT, message)
        return value, None
