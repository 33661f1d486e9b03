"""
Núcleo do cadastro: validação das seções, máquina de etapas e sessões.
"""
