# src/nexus_intake/core/__init__.py
"""
Core do Nexus Intake.

Implementação canônica e independente de transporte do processamento de
lotes. O core é projetado para ser:
    - determinístico (mesma entrada + configuração → mesmo resultado)
    - testável de forma isolada
    - livre de estado entre chamadas

Componentes:
    - config / errors / exceptions → ambiente comum (settings, erros canônicos)
    - parsing, inference, mapping, rules, registry → domínio
    - pipeline, engine → contratos de Step e execução do DAG do lote
    - ingestion → orquestrador público
"""
