"""
Módulo Finanças da Família
==========================

Livro-caixa doméstico: usuários, empresas, produtos, entradas e saídas
(à vista ou parceladas) com saldo por membro da família.

Componentes:
- api.py: Endpoints JSON (prefixo /api)
- lancamentos.py: Registro de entradas/saídas e baixa de parcelas
- relatorios.py: Resumo do mês e feed de transações
- storage.py / sql_storage.py: Repositórios em memória e SQL
"""

__version__ = "1.0.0"
