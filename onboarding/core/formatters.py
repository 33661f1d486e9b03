"""
Funções para formatar campos do cadastro enquanto o usuário digita.

Todas são puras, nunca levantam exceção e são idempotentes:
formatar um valor já formatado devolve o mesmo valor.
"""
import re
from typing import Optional, Tuple


DEFAULT_PHONE_PREFIX = "+55 ("

_NON_DIGITS = re.compile(r"\D")
_NON_BANK_CHARS = re.compile(r"[^\d-]")


def only_digits(raw: Optional[str]) -> str:
    """
    Remove tudo que não é dígito.
    """
    if not raw:
        return ""
    return _NON_DIGITS.sub("", str(raw))


def format_cnpj(raw: Optional[str]) -> str:
    """
    Formata CNPJ progressivamente no padrão NN.NNN.NNN/NNNN-NN.

    Exemplos:
        "11222" → "11.222"
        "11222333000181" → "11.222.333/0001-81"
    """
    digits = only_digits(raw)[:14]

    if len(digits) <= 2:
        return digits
    if len(digits) <= 5:
        return f"{digits[:2]}.{digits[2:]}"
    if len(digits) <= 8:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:]}"
    if len(digits) <= 12:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:]}"
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def format_cpf(raw: Optional[str]) -> str:
    """
    Formata CPF progressivamente no padrão NNN.NNN.NNN-NN.
    """
    digits = only_digits(raw)[:11]

    if len(digits) <= 3:
        return digits
    if len(digits) <= 6:
        return f"{digits[:3]}.{digits[3:]}"
    if len(digits) <= 9:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:]}"
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_document(raw: Optional[str]) -> str:
    """
    Formata como CPF até 11 dígitos e como CNPJ acima disso.
    Usado no titular da conta bancária, que pode ser PF ou PJ.
    """
    if len(only_digits(raw)) > 11:
        return format_cnpj(raw)
    return format_cpf(raw)


def format_cep(raw: Optional[str]) -> str:
    """
    Formata CEP no padrão NNNNN-NNN (máximo 8 dígitos).
    """
    digits = only_digits(raw)[:8]
    if len(digits) <= 5:
        return digits
    return f"{digits[:5]}-{digits[5:]}"


def format_phone(raw: Optional[str]) -> str:
    """
    Reconstrói o telefone a partir dos dígitos no padrão +CC (AA) NNNNNNNNN.

    Os dois primeiros dígitos são o código do país, os dois seguintes o DDD
    e o restante o número. Sem dígitos, devolve o prefixo padrão "+55 (".

    Exemplos:
        "" → "+55 ("
        "5541" → "+55 (41"
        "5541999380969" → "+55 (41) 999380969"
    """
    digits = only_digits(raw)

    if not digits:
        return DEFAULT_PHONE_PREFIX
    if len(digits) == 1:
        return f"+{digits}"
    if len(digits) <= 4:
        return f"+{digits[:2]} ({digits[2:]}"
    return f"+{digits[:2]} ({digits[2:4]}) {digits[4:]}"


def split_check_digit(raw: Optional[str]) -> Tuple[str, str]:
    """
    Separa número e dígito verificador de agência/conta.

    Se houver hífen, o dígito é o primeiro número depois dele; senão,
    o último caractere é tratado como dígito verificador.

    Exemplos:
        "0935-2" → ("0935", "2")
        "123456" → ("12345", "6")
        "7" → ("7", "")
    """
    clean = _NON_BANK_CHARS.sub("", raw or "")
    parts = clean.split("-")

    if len(parts) > 1:
        return only_digits(parts[0]), only_digits(parts[1])[:1]
    if len(clean) > 1:
        return clean[:-1], clean[-1]
    return clean, ""


def format_bank_number(raw: Optional[str]) -> str:
    """
    Formata agência ou conta como NUMERO-DIGITO.

    Sem dígitos, devolve a entrada limpa (só dígitos e hífens) sem alteração.
    """
    if not raw:
        return ""

    clean = _NON_BANK_CHARS.sub("", raw)
    number, digit = split_check_digit(clean)

    if number and digit:
        return f"{number}-{digit}"
    if number:
        return number
    return clean


def format_cnae(raw: Optional[str]) -> str:
    """
    Reduz o código CNAE aos 7 dígitos da subclasse ("4711-3/02" → "4711302").
    """
    return only_digits(raw)[:7]


def is_valid_cnpj(raw: Optional[str]) -> bool:
    """
    Valida os dígitos verificadores do CNPJ.
    Rejeita CNPJs com todos os dígitos iguais (ex: 00.000.000/0000-00).
    """
    digits = only_digits(raw)
    if len(digits) != 14 or len(set(digits)) == 1:
        return False

    first_weights = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    second_weights = [6] + first_weights
    for position, weights in ((12, first_weights), (13, second_weights)):
        total = sum(int(d) * w for d, w in zip(digits[:position], weights))
        rest = total % 11
        expected = 0 if rest < 2 else 11 - rest
        if int(digits[position]) != expected:
            return False
    return True


def is_valid_cpf(raw: Optional[str]) -> bool:
    """
    Valida os dígitos verificadores do CPF.
    Rejeita CPFs com todos os dígitos iguais (ex: 111.111.111-11).
    """
    digits = only_digits(raw)
    if len(digits) != 11 or len(set(digits)) == 1:
        return False

    for position in (9, 10):
        total = sum(int(digits[i]) * (position + 1 - i) for i in range(position))
        expected = (total * 10) % 11 % 10
        if int(digits[position]) != expected:
            return False
    return True


def mask_document(value: Optional[str]) -> str:
    """
    Mascara documentos e e-mails para logs (primeiros 3 e últimos 2 caracteres).
    Ex: "11.222.333/0001-81" -> "11.****81"
    """
    if not value:
        return ""
    if len(value) <= 5:
        return "****"
    return f"{value[:3]}****{value[-2:]}"
