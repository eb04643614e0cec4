"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports (WebSocket connection,
    HTTP upload, credential and settings persistence, and an offline backend
    double) used by the session coordinator.

Dependencies:
    Individual submodules depend on ``websocket-client``, ``requests``,
    filesystem APIs, and domain protocol definitions.

Call context:
    Imported by ``remex.app.controller`` for runtime wiring and by tests for
    mocks and transport-level behavior verification.
"""
