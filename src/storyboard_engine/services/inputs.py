"""Validation of user inputs against a content type's inputs contract."""

from typing import Any

from storyboard_engine.domain.enums import InputFieldType
from storyboard_engine.domain.errors import ValidationError
from storyboard_engine.domain.models import ContentType, InputField


def get_path(data: Any, path: str) -> Any:
    """Resolve a dotted key path (``"subject.product.name"``); None if absent."""
    current = data
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def _check_type(field: InputField, value: Any) -> Any:
    """Validate (and lightly coerce) a present value for its declared type."""
    if field.type == InputFieldType.NUMBER:
        if isinstance(value, bool):
            raise ValidationError(f'Field "{field.label}" must be a number')
        if isinstance(value, int | float):
            return value
        try:
            return float(value) if "." in str(value) else int(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f'Field "{field.label}" must be a number') from e

    if field.type == InputFieldType.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        raise ValidationError(f'Field "{field.label}" must be true or false')

    if field.type == InputFieldType.ENUM:
        options = field.constraints.get("options") or []
        allowed = [o.get("value") if isinstance(o, dict) else o for o in options]
        if allowed and value not in allowed:
            raise ValidationError(
                f'Field "{field.label}" must be one of: {", ".join(map(str, allowed))}'
            )
        return value

    if field.type == InputFieldType.LIST:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if not isinstance(value, list):
            raise ValidationError(f'Field "{field.label}" must be a list')
        return value

    return value if isinstance(value, str) else str(value)


def extract_inputs(content_type: ContentType, raw_inputs: dict[str, Any]) -> dict[str, Any]:
    """Extract prompt-facing inputs keyed by field label.

    Values are looked up by each field's dotted key path. Empty optional
    fields are omitted.

    Raises:
        ValidationError: If a required field is missing or a value has the wrong type
    """
    extracted: dict[str, Any] = {}

    for field in content_type.inputs_contract:
        value = get_path(raw_inputs, field.key)

        if _is_empty(value):
            if field.required:
                raise ValidationError(f'Required field "{field.label}" ({field.key}) is missing')
            continue

        extracted[field.label] = _check_type(field, value)

    return extracted


def format_inputs(inputs: dict[str, Any]) -> str:
    """Render inputs as ``label: value`` lines for prompts."""
    lines = []
    for label, value in inputs.items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        lines.append(f"{label}: {value}")
    return "\n".join(lines)
