"""
Definição única das sete seções do cadastro e das etapas do formulário.
"""
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from .errors import ErrorKind
from .formatters import (
    format_bank_number,
    format_cep,
    format_cnae,
    format_cnpj,
    format_cpf,
    format_document,
    format_phone,
    is_valid_cnpj,
    is_valid_cpf,
    only_digits,
)
from .schema import FieldKind, FieldRule, SectionSchema
from ..domain.catalogs import (
    ACCOUNT_TYPES,
    ANTICIPATION_PERIODICITIES,
    ANTICIPATION_TYPES,
    BANK_CODES,
    CARD_PROCESSING_METHODS,
    COUNTRIES,
    GENDERS,
    HOLDER_TYPES,
    PAYMENT_METHODS,
    PHONE_TYPES,
    STATES,
    TERMINAL_TIME_ZONES,
)

CNPJ_PATTERN = re.compile(r"\d{2}\.\d{3}\.\d{3}/\d{4}-\d{2}")
CPF_PATTERN = re.compile(r"\d{3}\.\d{3}\.\d{3}-\d{2}")
CEP_PATTERN = re.compile(r"\d{5}-\d{3}")
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"\+\d{2} \(\d{2}\) \d{8,9}")
BANK_NUMBER_PATTERN = re.compile(r"\d+-\d")
CNAE_PATTERN = re.compile(r"\d{7}")


class SectionName(str, Enum):
    """
    Seções do cadastro, na ordem das etapas.
    """
    COMPANY = "company"
    RESPONSIBLE = "responsible"
    CONTACT = "contact"
    ADDRESS = "address"
    BANKING = "banking"
    FEES = "fees"
    OPERATION = "operation"


def _upper(value: str) -> str:
    return value.upper()


def _lower(value: str) -> str:
    return value.lower()


def _holder_document_matches_type(
    value: Any,
    section: Mapping[str, Any],
) -> Optional[Tuple[ErrorKind, str]]:
    """
    PF exige CPF válido e PJ exige CNPJ válido como documento do titular.
    Se o tipo for inválido, o erro já é reportado no próprio campo de tipo.
    """
    holder_type = section.get("holderType")
    if holder_type == "PF" and not is_valid_cpf(value):
        return ErrorKind.INVALID_FORMAT, "Holder document must be a valid CPF for PF accounts"
    if holder_type == "PJ" and not is_valid_cnpj(value):
        return ErrorKind.INVALID_FORMAT, "Holder document must be a valid CNPJ for PJ accounts"
    return None


def _anticipation_is_mandatory(section: Mapping[str, Any]) -> bool:
    return section.get("anticipationType") == "mandatory"


COMPANY_SCHEMA = SectionSchema(
    name=SectionName.COMPANY.value,
    fields={
        "fantasyName": FieldRule(label="Fantasy name"),
        "legalName": FieldRule(label="Legal name"),
        "documentNumber": FieldRule(
            label="CNPJ",
            pattern=CNPJ_PATTERN,
            formatter=format_cnpj,
            check=is_valid_cnpj,
            format_message="CNPJ must be a valid number in the format 00.000.000/0000-00",
        ),
        "establishmentType": FieldRule(label="Establishment type"),
        "cnae": FieldRule(
            label="CNAE",
            pattern=CNAE_PATTERN,
            formatter=format_cnae,
            format_message="CNAE must be a 7-digit subclass code",
        ),
        "openingDate": FieldRule(label="Opening date", kind=FieldKind.DATE),
    },
)

RESPONSIBLE_SCHEMA = SectionSchema(
    name=SectionName.RESPONSIBLE.value,
    fields={
        "name": FieldRule(label="Name"),
        "cpf": FieldRule(
            label="CPF",
            pattern=CPF_PATTERN,
            formatter=format_cpf,
            check=is_valid_cpf,
            format_message="CPF must be a valid number in the format 000.000.000-00",
        ),
        "birthDate": FieldRule(label="Birth date", kind=FieldKind.DATE),
        "gender": FieldRule(label="Gender", kind=FieldKind.ENUM, options=GENDERS, formatter=_lower),
    },
)

CONTACT_SCHEMA = SectionSchema(
    name=SectionName.CONTACT.value,
    fields={
        "email": FieldRule(
            label="Email",
            pattern=EMAIL_PATTERN,
            format_message="Invalid email address",
        ),
        "phone": FieldRule(
            label="Phone",
            pattern=PHONE_PATTERN,
            formatter=format_phone,
            format_message="Phone must be in the format +55 (11) 987654321",
        ),
        "phoneType": FieldRule(label="Phone type", kind=FieldKind.ENUM, options=PHONE_TYPES, formatter=_lower),
    },
)

ADDRESS_SCHEMA = SectionSchema(
    name=SectionName.ADDRESS.value,
    fields={
        "zipCode": FieldRule(
            label="CEP",
            pattern=CEP_PATTERN,
            formatter=format_cep,
            format_message="CEP must have 8 digits",
        ),
        "street": FieldRule(label="Street"),
        "number": FieldRule(label="Number"),
        "complement": FieldRule(label="Complement", required=False),
        "neighborhood": FieldRule(label="Neighborhood"),
        "city": FieldRule(label="City"),
        "state": FieldRule(label="State", kind=FieldKind.ENUM, options=STATES, formatter=_upper),
        "country": FieldRule(
            label="Country",
            kind=FieldKind.ENUM,
            options=COUNTRIES,
            formatter=_upper,
            default="BR",
        ),
    },
)

BANKING_SCHEMA = SectionSchema(
    name=SectionName.BANKING.value,
    fields={
        "holderName": FieldRule(label="Holder legal name"),
        "holderType": FieldRule(label="Holder type", kind=FieldKind.ENUM, options=HOLDER_TYPES, formatter=_upper),
        "holderDocument": FieldRule(
            label="Holder document",
            formatter=format_document,
            cross_field_rule=_holder_document_matches_type,
        ),
        "bankCode": FieldRule(label="Bank", kind=FieldKind.ENUM, options=BANK_CODES),
        "agency": FieldRule(
            label="Agency",
            pattern=BANK_NUMBER_PATTERN,
            formatter=format_bank_number,
            format_message="Agency should be in format 0000-0",
        ),
        "accountNumber": FieldRule(
            label="Account number",
            pattern=BANK_NUMBER_PATTERN,
            formatter=format_bank_number,
            format_message="Account should be in format 00000-0",
        ),
        "accountType": FieldRule(label="Account type", kind=FieldKind.ENUM, options=ACCOUNT_TYPES, formatter=_lower),
    },
)

FEES_SCHEMA = SectionSchema(
    name=SectionName.FEES.value,
    fields={
        "anticipationType": FieldRule(
            label="Anticipation type",
            kind=FieldKind.ENUM,
            options=ANTICIPATION_TYPES,
            formatter=_lower,
            default="none",
        ),
        "anticipationPeriodicity": FieldRule(
            label="Anticipation periodicity",
            kind=FieldKind.ENUM,
            options=ANTICIPATION_PERIODICITIES,
            formatter=_lower,
            required_when=_anticipation_is_mandatory,
        ),
        "anticipationAmount": FieldRule(
            label="Anticipation amount",
            kind=FieldKind.NUMBER,
            minimum=Decimal("0"),
            maximum=Decimal("100"),
            required_when=_anticipation_is_mandatory,
        ),
    },
)

OPERATION_SCHEMA = SectionSchema(
    name=SectionName.OPERATION.value,
    fields={
        "paymentMethod": FieldRule(
            label="Payment method",
            kind=FieldKind.ENUM,
            options=PAYMENT_METHODS,
            formatter=_lower,
        ),
        "cardProcessingMethod": FieldRule(
            label="Card processing method",
            kind=FieldKind.ENUM,
            options=CARD_PROCESSING_METHODS,
            formatter=_lower,
        ),
        "terminalTimeZone": FieldRule(
            label="Terminal time zone",
            required=False,
            kind=FieldKind.ENUM,
            options=TERMINAL_TIME_ZONES,
            formatter=_lower,
        ),
    },
)


@dataclass(frozen=True)
class StepDefinition:
    id: int
    title: str
    description: str
    section: SectionName
    schema: SectionSchema


STEPS: Tuple[StepDefinition, ...] = (
    StepDefinition(0, "Company", "Company Information", SectionName.COMPANY, COMPANY_SCHEMA),
    StepDefinition(1, "Responsible Person", "Responsible Individual", SectionName.RESPONSIBLE, RESPONSIBLE_SCHEMA),
    StepDefinition(2, "Contact", "Contact Details", SectionName.CONTACT, CONTACT_SCHEMA),
    StepDefinition(3, "Address", "Address Information", SectionName.ADDRESS, ADDRESS_SCHEMA),
    StepDefinition(4, "Banking", "Banking Details", SectionName.BANKING, BANKING_SCHEMA),
    StepDefinition(5, "Fees", "Fee Structure", SectionName.FEES, FEES_SCHEMA),
    StepDefinition(6, "Operation", "Operation Details", SectionName.OPERATION, OPERATION_SCHEMA),
)

# Formatadores expostos para uso campo a campo (a cada tecla digitada)
FORMATTERS = {
    "cnpj": format_cnpj,
    "cpf": format_cpf,
    "document": format_document,
    "cep": format_cep,
    "phone": format_phone,
    "agency": format_bank_number,
    "account": format_bank_number,
    "cnae": format_cnae,
    "digits": only_digits,
}
