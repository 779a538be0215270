"""
Integration tests.

These wire the full gateway state (registry, broadcaster, event store,
ledger, orchestrator) with the fake render provider and check that the
pieces agree with each other. No network access is needed.
"""
