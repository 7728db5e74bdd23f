"""Infrastructure Layer - database, mail transport, and cross-cutting concerns.

Invariants:
    - Infrastructure implements the Protocols in core/repository_protocols.py
    - Every external failure is mapped to a WaitlistError subclass (core/errors.py)
"""
