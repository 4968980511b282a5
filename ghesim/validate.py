import json
import sys
from collections.abc import Iterable
from pathlib import Path

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError

SCHEMA_PATH = Path(__file__).parent / "schemas" / "ghesim.schema.json"

# lower weight is reported first; composite validators mostly repeat their branches' errors
VALIDATOR_WEIGHTS = {
    "additionalProperties": 0,
    "required": 1,
    "enum": 2,
    "type": 3,
    "exclusiveMinimum": 4,
    "minimum": 4,
    "maximum": 4,
    "minItems": 5,
    "maxItems": 5,
    "oneOf": 20,
    "anyOf": 21,
}


def _location(path: Iterable) -> str:
    parts = [str(p) for p in path]
    if not parts:
        return "Root"
    return "Root → " + " → ".join(parts)


def _rank(err: ValidationError) -> tuple[int, int, int]:
    return VALIDATOR_WEIGHTS.get(err.validator, 10), -len(list(err.path)), len(err.message or "")


def best_error(errors: Iterable[ValidationError]) -> ValidationError:
    """Pick the most specific error: deepest location of the most actionable validator."""
    return min(errors, key=_rank)


def _hints(err: ValidationError) -> list[str]:
    match err.validator:
        case "required":
            return [f"Add the missing required field. Details: {err.message}"]
        case "additionalProperties":
            allowed = sorted(err.schema.get("properties", {}).keys())
            hints = ["Remove or rename the unexpected property."]
            if allowed:
                hints.append("Allowed properties here are: " + ", ".join(allowed))
            return hints
        case "enum":
            return [
                "Use one of the allowed values: " + ", ".join(map(str, err.validator_value)),
                "Note: enum matching is case-sensitive.",
            ]
        case "type":
            return [f"Ensure the value is of type: {err.validator_value}"]
        case "oneOf" | "anyOf":
            hints = [f"Variant {i} failed: {sub.message}" for i, sub in enumerate(err.context or [], start=1)]
            hints.append("Adjust the object so it matches exactly one variant.")
            return hints
        case _:
            return []


def validate_input_file(input_file_path: Path) -> None:
    """
    Validate an input file against the schema.

    The most relevant error is reported on stderr before it is raised.
    """
    instance = json.loads(Path(input_file_path).read_text())
    schema = json.loads(SCHEMA_PATH.read_text())

    errors = list(Draft7Validator(schema).iter_errors(instance))
    if not errors:
        return

    err = best_error(errors)
    print("\nValidation Error:", file=sys.stderr)
    print(f"  Location:        {_location(err.path)}", file=sys.stderr)
    print(f"  Validator:       {err.validator}", file=sys.stderr)
    print(f"  Message:         {err.message}", file=sys.stderr)

    hints = _hints(err)
    if hints:
        print("\nSuggested Fix:", file=sys.stderr)
        for line in hints:
            print(f"  - {line}", file=sys.stderr)

    raise err
