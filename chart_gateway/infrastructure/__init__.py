"""Infrastructure: monitoring (metrics and health)."""
