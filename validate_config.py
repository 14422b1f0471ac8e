#!/usr/bin/env python3
"""
Check FleetWatch configuration files before deploying them.

Each file goes through load_settings (schema validation included), then
the checks the schema cannot express: the timezone must exist, a fixture
must point at a readable file, and without a fixture the REST API
credentials must come from the file or the environment.
"""
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from jsonschema import ValidationError

from config import build_timezone, load_settings


def validate_config_file(filepath: Path, env: Optional[Dict[str, str]] = None) -> List[str]:
    """Validate a single config YAML file. Returns list of errors."""
    env = os.environ if env is None else env
    if not filepath.exists():
        return [f"File not found: {filepath}"]
    try:
        settings = load_settings(filepath, env=env)
    except yaml.YAMLError as e:
        return [f"YAML parse error: {e}"]
    except ValidationError as e:
        errors = [f"Schema validation error: {e.message}"]
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
        return errors

    errors = []
    try:
        build_timezone(settings)
    except ValueError as e:
        errors.append(str(e))
    if settings.fixture:
        if not Path(settings.fixture).is_file():
            errors.append(f"Fixture file not found: {settings.fixture}")
    else:
        if not settings.supabase_url:
            errors.append("No supabase.url (or SUPABASE_URL) and no fixture")
        if not settings.supabase_key:
            errors.append("No supabase.serviceKey (or SUPABASE_SERVICE_ROLE_KEY) and no fixture")
    return errors


def main(argv=None):
    """Validate each config file given on the command line (default: fleetwatch.yaml)."""
    paths = [Path(p) for p in (argv if argv is not None else sys.argv[1:])] or [Path("fleetwatch.yaml")]

    all_valid = True
    for filepath in paths:
        errors = validate_config_file(filepath)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
