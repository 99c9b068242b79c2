"""Infrastructure Layer — database access, the SQL user backend, and logging.

Invariants:
    - Infrastructure implements core protocols; core never imports from here
    - All SQLAlchemy failures surface as DatabaseError
"""
