"""Core Layer — pure session logic and boundary contracts, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, infrastructure/, models/, or db/
    - Protocols in repository_protocols.py are the only view core has of the backend
"""
