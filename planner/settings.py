"""
Purpose: Central configuration for the planner and its external services.
What it does:

Reads tunables from the environment (a .env file is loaded first):

OSRM_BASE_URL            = https://router.project-osrm.org
OSRM_PROFILE             = driving
NOMINATIM_BASE_URL       = https://nominatim.openstreetmap.org
GEOCODER_USER_AGENT      = CourierRunPlanner/1.0
GEOCODE_MIN_INTERVAL_SEC = 1.0
LINK_UNWRAP_PROXY_URL    = (empty: follow short links directly)
HTTP_TIMEOUT_SEC         = 10
LOG_LEVEL                = INFO

Rule: No logic here beyond parsing and validation.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s | %(levelname)8s | %(name)s | %(message)s"


@dataclass(frozen=True)
class PlannerSettings:
    """
    Connection details and rate limits for the routing / geocoding services.
    """

    # --- Routing (OSRM) ---
    osrm_base_url: str = "https://router.project-osrm.org"
    osrm_profile: str = "driving"

    # --- Geocoding (Nominatim) ---
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    # Nominatim rejects requests without an identifying User-Agent
    geocoder_user_agent: str = "CourierRunPlanner/1.0"
    # Nominatim usage policy: max one request per second
    geocode_min_interval_sec: float = 1.0

    # --- Short links ---
    # AllOrigins-style proxy (e.g. https://api.allorigins.win/get); empty = direct fetch
    link_unwrap_proxy_url: str = ""

    http_timeout_sec: float = 10.0
    log_level: str = "INFO"

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if not self.osrm_base_url:
            raise ValueError("OSRM base URL not set. Please set OSRM_BASE_URL in the .env file.")

        if not self.nominatim_base_url:
            raise ValueError("Nominatim base URL not set. Please set NOMINATIM_BASE_URL in the .env file.")

        if not self.geocoder_user_agent:
            raise ValueError("GEOCODER_USER_AGENT must not be empty")

        if self.geocode_min_interval_sec < 0:
            raise ValueError("geocode_min_interval_sec must be >= 0")

        if self.http_timeout_sec <= 0:
            raise ValueError("http_timeout_sec must be > 0")

        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValueError(f"Unknown LOG_LEVEL {self.log_level!r}")


def settings_from_env() -> PlannerSettings:
    """
    Build settings from the environment (after loading .env), falling back to defaults.
    """
    load_dotenv()
    defaults = PlannerSettings()

    s = PlannerSettings(
        osrm_base_url=os.getenv("OSRM_BASE_URL", defaults.osrm_base_url),
        osrm_profile=os.getenv("OSRM_PROFILE", defaults.osrm_profile),
        nominatim_base_url=os.getenv("NOMINATIM_BASE_URL", defaults.nominatim_base_url),
        geocoder_user_agent=os.getenv("GEOCODER_USER_AGENT", defaults.geocoder_user_agent),
        geocode_min_interval_sec=float(os.getenv("GEOCODE_MIN_INTERVAL_SEC", defaults.geocode_min_interval_sec)),
        link_unwrap_proxy_url=os.getenv("LINK_UNWRAP_PROXY_URL", defaults.link_unwrap_proxy_url),
        http_timeout_sec=float(os.getenv("HTTP_TIMEOUT_SEC", defaults.http_timeout_sec)),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
    )
    s.validate()
    return s


def configure_logging(level: str = "INFO") -> None:
    """Console logging for scripts and local runs."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
