"""User Store Package — client-side session state and public profile cache.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
