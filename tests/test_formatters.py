"""Testes dos formatadores e validadores de documentos."""

import pytest

from onboarding.core.formatters import (
    DEFAULT_PHONE_PREFIX,
    format_bank_number,
    format_cep,
    format_cnae,
    format_cnpj,
    format_cpf,
    format_document,
    format_phone,
    is_valid_cnpj,
    is_valid_cpf,
    mask_document,
    only_digits,
    split_check_digit,
)

CNPJ_PROGRESSIVE_CASES = [
    ("", ""),
    ("11", "11"),
    ("112", "11.2"),
    ("11222", "11.222"),
    ("112223", "11.222.3"),
    ("11222333", "11.222.333"),
    ("112223330", "11.222.333/0"),
    ("112223330001", "11.222.333/0001"),
    ("1122233300018", "11.222.333/0001-8"),
    ("11222333000181", "11.222.333/0001-81"),
    ("1122233300018199", "11.222.333/0001-81"),
]


class TestDocumentFormatters:
    """Testes de CNPJ, CPF e CEP."""

    @pytest.mark.parametrize("raw, expected", CNPJ_PROGRESSIVE_CASES)
    def test_format_cnpj_progressive(self, raw, expected):
        """Testa a formatação progressiva do CNPJ a cada dígito."""
        assert format_cnpj(raw) == expected

    @pytest.mark.parametrize("raw", ["11222333000181"[:size] for size in range(15)])
    def test_format_cnpj_idempotent(self, raw):
        """Testa que formatar um CNPJ parcial ou completo já formatado não o altera."""
        formatted = format_cnpj(raw)
        assert format_cnpj(formatted) == formatted

    def test_format_cpf(self):
        """Testa a formatação do CPF."""
        assert format_cpf("52998224725") == "529.982.247-25"
        assert format_cpf("5299") == "529.9"
        assert format_cpf("529.982.247-25") == "529.982.247-25"

    def test_format_document_switches_to_cnpj(self):
        """Testa que o documento do titular vira CNPJ acima de 11 dígitos."""
        assert format_document("52998224725") == "529.982.247-25"
        assert format_document("11222333000181") == "11.222.333/0001-81"

    def test_format_cep(self):
        """Testa a formatação do CEP."""
        assert format_cep("01310100") == "01310-100"
        assert format_cep("01310") == "01310"
        assert format_cep("01310-100") == "01310-100"
        assert format_cep("013101009999") == "01310-100"

    def test_only_digits(self):
        """Testa a remoção de caracteres não numéricos."""
        assert only_digits("11.222.333/0001-81") == "11222333000181"
        assert only_digits(None) == ""


class TestPhoneFormatter:
    """Testes do telefone no padrão +CC (AA) número."""

    def test_empty_returns_default_prefix(self):
        """Testa que sem dígitos o prefixo padrão é devolvido."""
        assert format_phone("") == DEFAULT_PHONE_PREFIX
        assert format_phone("+ ( )") == "+55 ("

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("5", "+5"),
            ("55", "+55 ("),
            ("5541", "+55 (41"),
            ("55419", "+55 (41) 9"),
            ("5541999380969", "+55 (41) 999380969"),
        ],
    )
    def test_progressive_reconstruction(self, raw, expected):
        """Testa a reconstrução do telefone conforme os dígitos aumentam."""
        assert format_phone(raw) == expected

    def test_idempotent(self):
        """Testa que o telefone formatado permanece igual."""
        formatted = format_phone("5511987654321")
        assert formatted == "+55 (11) 987654321"
        assert format_phone(formatted) == formatted


class TestBankNumberFormatter:
    """Testes de agência e conta (NUMERO-DIGITO)."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0935-2", "0935-2"),
            ("09352", "0935-2"),
            ("123456", "12345-6"),
            ("12345-67", "12345-6"),
            ("ab12-3", "12-3"),
            ("7", "7"),
            ("", ""),
            ("-", "-"),
        ],
    )
    def test_format_bank_number(self, raw, expected):
        """Testa a separação do dígito verificador."""
        assert format_bank_number(raw) == expected

    def test_split_check_digit(self):
        """Testa a separação de número e dígito."""
        assert split_check_digit("0935-2") == ("0935", "2")
        assert split_check_digit("123456") == ("12345", "6")
        assert split_check_digit("7") == ("7", "")

    def test_idempotent(self):
        """Testa que reformatar não altera o valor."""
        assert format_bank_number(format_bank_number("123456")) == "12345-6"


class TestCheckDigits:
    """Testes de dígitos verificadores de CNPJ e CPF."""

    def test_valid_cnpj(self):
        assert is_valid_cnpj("11.222.333/0001-81") is True
        assert is_valid_cnpj("11222333000181") is True

    def test_invalid_cnpj(self):
        assert is_valid_cnpj("11.222.333/0001-82") is False
        assert is_valid_cnpj("00.000.000/0000-00") is False
        assert is_valid_cnpj("1122233300018") is False

    def test_valid_cpf(self):
        assert is_valid_cpf("529.982.247-25") is True

    def test_invalid_cpf(self):
        assert is_valid_cpf("529.982.247-26") is False
        assert is_valid_cpf("111.111.111-11") is False
        assert is_valid_cpf("5299822472") is False


class TestMisc:
    def test_format_cnae(self):
        """Testa a redução do código CNAE a 7 dígitos."""
        assert format_cnae("4711-3/02") == "4711302"
        assert format_cnae("4711302") == "4711302"

    def test_mask_document(self):
        """Testa o mascaramento usado nos logs."""
        assert mask_document("11.222.333/0001-81") == "11.****81"
        assert mask_document("1234") == "****"
        assert mask_document(None) == ""
