"""
Pairing engine.

Pure functions and dataclasses:
- Accept wrestler profiles, bout references and rule settings
- Never open a database session or look at HTTP requests
- Return new values or mutate only the MatBoard they are given
"""
