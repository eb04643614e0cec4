"""Application package containing runtime wiring and the console entry point.

Primary entry point: ``remex.app.main:main``.
"""
