"""ViewModel package for session state and command surfaces.

Call context:
    ``remex.app`` modules and external front ends import concrete view models
    from this package to bind view callbacks to coordinator commands.

Dependencies:
    Modules here depend on domain types and the session coordinator only.
    I/O adapters remain outside.
"""
