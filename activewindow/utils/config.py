import os
import re
import json
from pathlib import Path
from typing import Dict, Any, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from activewindow.utils.exceptions import ConfigError
from activewindow.utils.logging import get_logger

DEFAULT_CONFIG_PATH = Path("~/.config/activewindow/config.json")
ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}|\$(\w+)")

class RetrySettings(BaseModel):
    """Timing of the title re-check sequence."""
    delays_ms: List[int] = Field(
        default_factory=lambda: [50, 150, 350],
        description="Delay before each fast re-check, relative to the previous one"
    )
    poll_interval_ms: int = Field(500, gt=0, description="Slow poll cadence once fast re-checks are exhausted")

    @field_validator("delays_ms")
    @classmethod
    def _check_delays(cls, value: List[int]) -> List[int]:
        if not value:
            raise ValueError("at least one fast retry delay is required")
        if any(delay <= 0 for delay in value):
            raise ValueError("retry delays must be positive")
        return value

    @property
    def delays(self) -> List[float]:
        return [delay / 1000 for delay in self.delays_ms]

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000

class Settings(BaseModel):
    """Validated daemon configuration."""
    development: bool = Field(False, description="Enable debug logging")
    log_file: Optional[str] = Field(
        "~/.local/state/activewindow/activewindow.log",
        description="Log file path, or null to log to stderr only"
    )
    compositor: Literal["auto", "hyprland"] = "auto"
    retry: RetrySettings = Field(default_factory=RetrySettings)

def get_default_config() -> Dict[str, Any]:
    """Returns default configuration settings."""
    return {
        "development": False,  # Enable debug logging
        "log_file": "~/.local/state/activewindow/activewindow.log",
        "compositor": "auto",
        "retry": {
            "delays_ms": [50, 150, 350],
            "poll_interval_ms": 500
        }
    }

def load_env_vars(env_path: Path = None):
    """Load environment variables from .env file if it exists."""
    env_path = env_path or Path.cwd() / '.env'
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip())

def _expand_env_vars(value: str, missing_vars: List[str]) -> str:
    """Substitute every $VAR and ${VAR} reference in a string."""
    def substitute(match):
        env_var = match.group(1) or match.group(2)
        if env_var not in os.environ:
            missing_vars.append(env_var)
            return match.group(0)
        return os.environ[env_var]
    return ENV_VAR_PATTERN.sub(substitute, value)

def replace_env_vars(config: Dict) -> Dict:
    """Recursively replace environment variables in config values."""
    result = {}
    missing_vars = []

    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = replace_env_vars(value)
        elif isinstance(value, str):
            result[key] = _expand_env_vars(value, missing_vars)
        else:
            result[key] = value

    if missing_vars:
        error_msg = "\nMissing required environment variables:\n"
        for var in missing_vars:
            error_msg += f"- {var}\n"
        error_msg += "\nPlease set these in your environment or .env file."
        raise ConfigError(error_msg)

    return result

def resolve_config_path(config_path: Optional[str] = None) -> Path:
    """Pick the config file: explicit argument, then ACTIVEWINDOW_CONFIG, then the default."""
    if config_path:
        return Path(config_path).expanduser()
    if os.environ.get("ACTIVEWINDOW_CONFIG"):
        return Path(os.environ["ACTIVEWINDOW_CONFIG"]).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()

def ensure_config_exists(config_path: Path) -> Path:
    """Create default config if it doesn't exist. Returns config path."""
    if not config_path.exists():
        logger = get_logger(__name__)
        logger.warning(f"Config file not found at {config_path}")
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w') as f:
            json.dump(get_default_config(), f, indent=2)

        logger.info(f"Created default config at {config_path}")

    return config_path

def load_config(config_path: Optional[str] = None) -> Settings:
    """Loads configuration from a JSON file and replaces environment variables."""
    path = resolve_config_path(config_path)
    try:
        ensure_config_exists(path)
        load_env_vars()

        with open(path, 'r') as f:
            config = json.load(f)

        return Settings.model_validate(replace_env_vars(config))

    except ConfigError:
        raise
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found at {path}")
    except json.JSONDecodeError:
        raise ConfigError(f"Error decoding json at file: {path}")
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}")
    except Exception as e:
        raise ConfigError(f"Error loading configuration: {str(e)}")
