"""Pydantic Schemas - request/response validation for API endpoints.

Invariants:
    - Schemas are API contracts; persistence shapes live in models/
    - Request schemas keep email loosely typed so the service decides validity
      after the rate-limit gate
"""
