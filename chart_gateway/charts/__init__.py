"""
Charts Module

Chart request models, the request ledger, the lifecycle orchestrator and
the render providers behind it.
"""
