"""Schema definitions for the feature extraction tool."""

from typing import Any, Dict

FUNCTION_NAME = "list_image_features"

FUNCTION_DEFINITION: Dict[str, Any] = {
    "type": "function",
    "name": FUNCTION_NAME,
    "description": "Return the visual features a player could guess for the described image.",
    "parameters": {
        "type": "object",
        "properties": {
            "features": {
                "type": "array",
                "description": "Short feature phrases, most obvious first.",
                "items": {"type": "string"},
            },
        },
        "required": ["features"],
        "additionalProperties": False,
    },
    "strict": True,
}
