"""
Catálogos fixos usados pelos campos de seleção do cadastro.

Todas as listas são hard-coded: nenhuma delas depende de requisição HTTP.
"""
from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Bank:
    """Banco da lista da BCB."""
    code: str
    name: str


# Unidades federativas brasileiras (UF → nome)
STATES: Dict[str, str] = {
    "AC": "Acre", "AL": "Alagoas", "AP": "Amapá", "AM": "Amazonas",
    "BA": "Bahia", "CE": "Ceará", "DF": "Distrito Federal",
    "ES": "Espírito Santo", "GO": "Goiás", "MA": "Maranhão",
    "MT": "Mato Grosso", "MS": "Mato Grosso do Sul", "MG": "Minas Gerais",
    "PA": "Pará", "PB": "Paraíba", "PR": "Paraná", "PE": "Pernambuco",
    "PI": "Piauí", "RJ": "Rio de Janeiro", "RN": "Rio Grande do Norte",
    "RS": "Rio Grande do Sul", "RO": "Rondônia", "RR": "Roraima",
    "SC": "Santa Catarina", "SP": "São Paulo", "SE": "Sergipe",
    "TO": "Tocantins",
}

COUNTRIES: Dict[str, str] = {
    "BR": "Brasil",
    "US": "Estados Unidos",
    "PT": "Portugal",
    "AR": "Argentina",
    "CL": "Chile",
}

GENDERS: Dict[str, str] = {
    "male": "Male",
    "female": "Female",
    "non-binary": "Non-binary",
    "prefer-not-to-say": "Prefer not to say",
}

PHONE_TYPES: Dict[str, str] = {
    "mobile": "Mobile",
    "landline": "Landline",
    "business": "Business",
}

HOLDER_TYPES: Dict[str, str] = {
    "PF": "Pessoa Física",
    "PJ": "Pessoa Jurídica",
}

ACCOUNT_TYPES: Dict[str, str] = {
    "checking": "Conta Corrente",
    "savings": "Conta Poupança",
    "salary": "Conta Salário",
    "investment": "Conta Investimento",
}

ANTICIPATION_TYPES: Dict[str, str] = {
    "none": "No Anticipation",
    "occasional": "Occasional Anticipation",
    "mandatory": "Mandatory Anticipation",
}

ANTICIPATION_PERIODICITIES: Dict[str, str] = {
    "daily": "Daily",
    "weekly": "Weekly",
    "biweekly": "Bi-weekly",
}

PAYMENT_METHODS: Dict[str, str] = {
    "credit": "Credit Card",
    "debit": "Debit Card",
    "pix": "PIX",
    "boleto": "Boleto",
    "transfer": "Bank Transfer",
}

CARD_PROCESSING_METHODS: Dict[str, str] = {
    "pos": "POS Terminal",
    "online": "Online Gateway",
    "mobile": "Mobile Payment",
    "moto": "MOTO (Mail Order/Telephone Order)",
}

TERMINAL_TIME_ZONES: Dict[str, str] = {
    "america_sao_paulo": "America/Sao_Paulo",
    "america_manaus": "America/Manaus",
    "america_rio_branco": "America/Rio_Branco",
    "america_belem": "America/Belem",
    "america_fortaleza": "America/Fortaleza",
}

BRAZILIAN_BANKS: List[Bank] = [
    Bank("001", "Banco do Brasil S.A."),
    Bank("033", "Banco Santander (Brasil) S.A."),
    Bank("104", "Caixa Econômica Federal"),
    Bank("237", "Banco Bradesco S.A."),
    Bank("341", "Itaú Unibanco S.A."),
    Bank("041", "Banco do Estado do Rio Grande do Sul S.A."),
    Bank("004", "Banco do Nordeste do Brasil S.A."),
    Bank("745", "Banco Citibank S.A."),
    Bank("422", "Banco Safra S.A."),
    Bank("208", "Banco BTG Pactual S.A."),
    Bank("655", "Banco Votorantim S.A."),
    Bank("077", "Banco Inter S.A."),
    Bank("260", "Nubank"),
    Bank("336", "Banco C6 S.A."),
    Bank("756", "Banco Cooperativo do Brasil S.A. - BANCOOB"),
    Bank("748", "Banco Cooperativo Sicredi S.A."),
    Bank("212", "Banco Original S.A."),
    Bank("389", "Banco Mercantil do Brasil S.A."),
    Bank("735", "Banco Neon S.A."),
    Bank("246", "Banco ABC Brasil S.A."),
    Bank("025", "Banco Alfa S.A."),
    Bank("184", "Banco Itaú BBA S.A."),
    Bank("021", "Banestes S.A. Banco do Estado do Espírito Santo"),
    Bank("479", "Banco ItauBank S.A."),
    Bank("623", "Banco PAN S.A."),
    Bank("633", "Banco Rendimento S.A."),
    Bank("707", "Banco Daycoval S.A."),
    Bank("600", "Banco Luso Brasileiro S.A."),
    Bank("243", "Banco Máxima S.A."),
]

BANK_CODES: Dict[str, str] = {bank.code: bank.name for bank in BRAZILIAN_BANKS}


def get_bank_display_options() -> List[Dict[str, str]]:
    """
    Opções do seletor de banco no formato {"value": código, "label": "código - nome"}.
    """
    return [
        {"value": bank.code, "label": f"{bank.code} - {bank.name}"}
        for bank in BRAZILIAN_BANKS
    ]


def get_bank_name_by_code(code: str) -> str:
    """
    Retorna o nome do banco pelo código, ou string vazia se desconhecido.
    """
    return BANK_CODES.get(code, "")
