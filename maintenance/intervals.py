"""Loading the maintenance interval table."""

from pathlib import Path
from typing import List, Optional, Union

import yaml
from jsonschema import validate, ValidationError

from .errors import ConfigError
from .item_type import DEFAULT_OVERDUE_FRACTION, DEFAULT_WARNING_FRACTION, MaintenanceItemType

DEFAULT_INTERVALS_PATH = Path(__file__).parent / "intervals.yaml"
SCHEMA_DIR = Path(__file__).parent / "schemas"


def load_schema(name: str) -> dict:
    """Load a JSON schema stored as YAML under schemas/."""
    with open(SCHEMA_DIR / name) as f:
        return yaml.safe_load(f)


def load_item_types(
    filename: Optional[Union[str, Path]] = None,
) -> List[MaintenanceItemType]:
    """
    Load and validate the interval table.

    Defaults to the bundled intervals.yaml. Returns item types in file order.
    """
    path = Path(filename) if filename else DEFAULT_INTERVALS_PATH
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=load_schema("intervals.schema.yaml"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read interval table {path}: {e}") from e
    except ValidationError as e:
        where = ".".join(str(p) for p in e.path)
        raise ConfigError(f"Invalid interval table {path} at {where}: {e.message}") from e

    item_types = []
    seen = set()
    for dct in data["itemTypes"]:
        if dct["key"] in seen:
            raise ConfigError(f"Duplicate item type in {path}: {dct['key']}")
        seen.add(dct["key"])
        item_types.append(
            MaintenanceItemType(
                dct["key"],
                dct.get("label"),
                dct.get("intervalMonths"),
                dct.get("intervalDistance"),
                dct.get("warningFraction", DEFAULT_WARNING_FRACTION),
                dct.get("overdueFraction", DEFAULT_OVERDUE_FRACTION),
            )
        )
    return item_types
