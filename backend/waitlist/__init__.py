"""Interest List Service - pre-launch sign-ups with email verification.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
