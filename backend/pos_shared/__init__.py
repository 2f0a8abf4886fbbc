"""
Shared layer of the restaurant POS backend.

    config          settings, structured logging, constants
    infrastructure  database sessions, request correlation
    security        JWT auth, bcrypt, rate limiting, API tokens
    utils           exceptions, money validators, Pydantic schemas

Nothing here imports from pos_api.
"""
