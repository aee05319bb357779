"""Routing — the frozen ``(method, path)`` table the dispatcher reads.

Routes are registered during setup and compiled into an immutable
lookup structure when the app is built.
"""
