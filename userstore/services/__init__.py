"""Services Layer — the session store and its hook dispatch.

Invariants:
    - Services talk to the backend only through core/repository_protocols.py
"""
