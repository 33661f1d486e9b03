"""
Integrações externas: consulta de CEP (ViaCEP), catálogo CNAE (IBGE)
e entrega do cadastro.
"""
