"""
Cadastro de estabelecimentos em etapas (empresa, responsável, contato,
endereço, dados bancários, taxas e operação).
"""

__version__ = "0.1.0"
