from .gateways import (
    ChatGateway,
    EmptyPlanError,
    MalformedPlanError,
    ModerationGateway,
    PlannerConnectionError,
    PlannerError,
    PlannerGateway,
    parse_weekly_plan,
)

__all__ = [
    "ChatGateway", "EmptyPlanError", "MalformedPlanError", "ModerationGateway",
    "PlannerConnectionError", "PlannerError", "PlannerGateway", "parse_weekly_plan",
]
