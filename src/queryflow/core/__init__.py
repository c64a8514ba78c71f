# src/queryflow/core/__init__.py
"""
Core do queryflow.

Implementação canônica e independente de adapters: nenhum cliente de
banco, CLI ou renderizador vive aqui. Executores de query e resolvedores
de parâmetros são colaboradores injetados.

Componentes principais:
    - config   → resolução de configuração (merge, validação estrutural, hashing)
    - pipeline → tipos, contexto de execução, registry e protocolos
    - engine   → grafo, planejamento em layers e execução coordenada
    - template → scanner e resolver de templates
    - query    → stored queries

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo comportamento é explícito e testado
    - O mesmo pipeline sempre produz o mesmo plano
"""
