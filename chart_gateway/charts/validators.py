"""
Chart Config Validators

Turns a raw chart specification (JSON object from REST or MCP) into a
validated ChartConfig, or raises InvalidChartConfigError with one entry
per offending field.
"""

from typing import Any

import pydantic

from chart_gateway.charts.models import ChartConfig
from chart_gateway.core.exceptions import InvalidChartConfigError


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "body"


class ChartConfigValidator:
    """Validates chart configurations."""

    def validate(self, raw: Any) -> ChartConfig:
        if isinstance(raw, ChartConfig):
            return raw
        if not isinstance(raw, dict):
            raise InvalidChartConfigError(
                "Invalid request parameters",
                details={"errors": [{"field": "body", "message": "Chart config must be an object"}]},
            )

        try:
            return ChartConfig.model_validate(raw)
        except pydantic.ValidationError as e:
            errors = [
                {"field": _field_path(err["loc"]), "message": err["msg"].removeprefix("Value error, ")}
                for err in e.errors()
            ]
            raise InvalidChartConfigError(
                "Invalid request parameters", details={"errors": errors}
            ) from e
