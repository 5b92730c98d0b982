"""Configuration model for neat-folder."""

import json
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

from ..exceptions import ConfigurationError
from ..utils.sizes import parse_size
from .organization import GroupingMethod

DATABASE_ENV_VAR = "NEAT_FOLDER_DB"


@dataclass
class OrganizationOptions:
    """Options for one organize() run."""
    method: GroupingMethod = GroupingMethod.EXTENSION
    ignore_dotfiles: bool = False
    recursive: bool = False
    dry_run: bool = False
    max_depth: Optional[int] = 5
    min_size: int = 0
    max_size: Optional[int] = None
    verbose: bool = False
    max_workers: Optional[int] = None

    def __post_init__(self):
        self.method = GroupingMethod.parse(self.method)

    def validate(self) -> "OrganizationOptions":
        """Reject option combinations the organizer cannot honour."""
        for name in ("max_depth", "min_size", "max_size", "max_workers"):
            value = getattr(self, name)
            if value is None and name != "min_size":
                continue
            # bool is an int subclass
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.max_depth is not None and self.max_depth < 0:
            raise ConfigurationError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.min_size < 0:
            raise ConfigurationError(f"min_size must be >= 0, got {self.min_size}")
        if self.max_size is not None:
            if self.max_size < 0:
                raise ConfigurationError(f"max_size must be >= 0, got {self.max_size}")
            if self.max_size < self.min_size:
                raise ConfigurationError(
                    f"max_size ({self.max_size}) is smaller than min_size ({self.min_size})"
                )
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        return self

    def batch_size(self, total: int) -> int:
        """Number of moves allowed in flight at once."""
        workers = self.max_workers or (os.cpu_count() or 1)
        return max(1, min(total, workers * 2))


def load_config(config_path: Path) -> OrganizationOptions:
    """Load organization options from a JSON file."""
    try:
        with open(config_path, 'r') as f:
            config_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not load config {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Config {config_path} must contain a JSON object")

    known = {f.name for f in fields(OrganizationOptions)}
    unknown = set(config_data) - known
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    # Sizes may be written the way the command line takes them, e.g. "10MB"
    for key in ("min_size", "max_size"):
        if isinstance(config_data.get(key), str):
            config_data[key] = parse_size(config_data[key])
    if "min_size" in config_data and config_data["min_size"] is None:
        config_data["min_size"] = 0

    return OrganizationOptions(**config_data).validate()


def save_config(options: OrganizationOptions, config_path: Path) -> None:
    """Save organization options to a JSON file."""
    config_dict = asdict(options)
    config_dict["method"] = options.method.value

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        json.dump(config_dict, f, indent=2)


def default_database_path() -> Path:
    """Location of the history database, overridable via NEAT_FOLDER_DB."""
    override = os.environ.get(DATABASE_ENV_VAR)
    if override:
        db_path = Path(override).expanduser()
    else:
        db_path = Path.home() / ".cache" / "neat-folder" / "history.db"

    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path
