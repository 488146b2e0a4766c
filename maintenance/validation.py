"""Schema validation for fleet data files."""

from pathlib import Path
from typing import List, Optional, Union

import yaml
from jsonschema import validate, ValidationError

from .intervals import load_schema


def validate_fleet_file(
    filepath: Union[str, Path], schema: Optional[dict] = None
) -> List[str]:
    """Validate a fleet YAML file. Returns list of errors."""
    schema = schema or load_schema("fleet.schema.yaml")
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors
