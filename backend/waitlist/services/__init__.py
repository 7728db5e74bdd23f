"""Services Layer - use-case orchestration over core rules and infrastructure.

Invariants:
    - Services depend on core Protocols, never on concrete infrastructure classes
    - One class per use-case cluster (subscription, tokens, notifications)
"""
