# infra_engine/settings.py
"""
Engine settings.
"""

import os
from dataclasses import dataclass
from typing import Optional

# Load .env file
from dotenv import load_dotenv
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Engine configuration."""

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = _env_bool("LOG_JSON", "true")

    # Classification document (None = built-in base document)
    classification_path: Optional[str] = os.getenv("CLASSIFICATION_PATH")

    # Path search
    max_path_length: int = int(os.getenv("MAX_PATH_LENGTH", "6"))

    # Solve loop
    max_solve_iterations: int = int(os.getenv("MAX_SOLVE_ITERATIONS", "10"))


# Global settings instance
settings = Settings()
