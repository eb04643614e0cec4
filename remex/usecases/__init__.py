"""Use-case layer coordinating the backend session.

Modules here drive domain objects through ports without touching transports
directly, preserving MVVM + Hexagonal boundaries.
"""
