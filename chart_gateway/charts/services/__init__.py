from .chart_orchestrator import ChartLifecycleOrchestrator
from .request_ledger import RequestLedger

__all__ = ["ChartLifecycleOrchestrator", "RequestLedger"]
