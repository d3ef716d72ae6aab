from __future__ import annotations

from pharmacy_agent_core.registry import ToolDeclaration


SUPPORTED_LANGUAGES = ("en", "he")

_LANGUAGE_PARAM = {
    "type": "string",
    "enum": list(SUPPORTED_LANGUAGES),
    "description": 'Language of the returned names and texts: "en" = English (default), "he" = Hebrew.',
}


TOOL_DECLARATIONS: tuple[ToolDeclaration, ...] = (
    ToolDeclaration(
        name="lookup_medication",
        description=(
            "Get detailed information about a medication by its name (English or Hebrew). Returns the active "
            "ingredient, prescription requirement, usage instructions and purpose. Does NOT include stock."
        ),
        parameters={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "The medication name in English or Hebrew."},
                "language": _LANGUAGE_PARAM,
            },
            "required": ["name"],
        },
    ),
    ToolDeclaration(
        name="check_availability",
        description=(
            "Check current stock for one medication or a list of medications. Use a single string for one "
            "medication, or an array of strings for several."
        ),
        parameters={
            "type": "object",
            "properties": {
                "medication_name": {
                    "anyOf": [
                        {"type": "string", "description": "One medication name."},
                        {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Several medication names.",
                        },
                    ]
                },
                "language": _LANGUAGE_PARAM,
            },
            "required": ["medication_name"],
        },
    ),
    ToolDeclaration(
        name="check_prescription",
        description=(
            "Check whether the current user may purchase a medication: true when it needs no prescription or "
            "the user holds a valid one. The user is identified by the session; never ask for an ID."
        ),
        parameters={
            "type": "object",
            "properties": {
                "medication_name": {"type": "string", "description": "The medication name in English or Hebrew."},
                "language": _LANGUAGE_PARAM,
            },
            "required": ["medication_name"],
        },
        injected_params=("user_id",),
    ),
    ToolDeclaration(
        name="list_medications",
        description="List the names of every medication in the pharmacy catalog, ordered alphabetically.",
        parameters={
            "type": "object",
            "properties": {"language": _LANGUAGE_PARAM},
        },
    ),
)
