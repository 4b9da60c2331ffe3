#Expose the high-level pipeline pieces:
#Settings (environment / .env)
#DeliveryPlanner orchestrator (the "one object" the UI talks to)

from .settings import PlannerSettings, settings_from_env, configure_logging
from .planner import DeliveryPlanner, build_planner

__all__ = [
    "PlannerSettings",
    "settings_from_env",
    "configure_logging",
    "DeliveryPlanner",
    "build_planner",
]
