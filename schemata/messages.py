"""
Default English messages for each issue code.
"""

from __future__ import annotations

from typing import Any, Mapping

from .errors import IssueCode

_STRING_VALIDATIONS = {
    "email": "Invalid email",
    "url": "Invalid url",
    "uuid": "Invalid uuid",
    "regex": "Invalid",
    "datetime": "Invalid datetime",
}

_SIZE_UNITS = {
    "string": ("String", "character(s)"),
    "array": ("Array", "element(s)"),
    "set": ("Set", "element(s)"),
    "object": ("Object", "key(s)"),
}


def default_message(code: IssueCode, context: Mapping[str, Any]) -> str:
    match code:
        case IssueCode.INVALID_TYPE:
            if context.get("received") == "missing":
                return "Required"
            return f"Expected {context['expected']}, received {context['received']}"
        case IssueCode.INVALID_LITERAL:
            return f"Invalid literal value, expected {context['expected']!r}"
        case IssueCode.UNRECOGNIZED_KEYS:
            keys = ", ".join(repr(k) for k in context["keys"])
            return f"Unrecognized key(s) in object: {keys}"
        case IssueCode.INVALID_UNION:
            return "Invalid input"
        case IssueCode.INVALID_DISCRIMINATOR:
            options = " | ".join(repr(o) for o in context["options"])
            return f"Invalid discriminator value. Expected {options}"
        case IssueCode.INVALID_ENUM_VALUE:
            options = " | ".join(repr(o) for o in context["options"])
            return f"Invalid enum value. Expected {options}, received {context['received']!r}"
        case IssueCode.INVALID_STRING:
            return _string_message(context["validation"])
        case IssueCode.INVALID_DATE:
            return "Invalid date"
        case IssueCode.TOO_SMALL:
            return _bound_message(context, context["minimum"], small=True)
        case IssueCode.TOO_BIG:
            return _bound_message(context, context["maximum"], small=False)
        case IssueCode.INVALID_INTERSECTION_TYPES:
            return "Intersection results could not be merged"
        case IssueCode.NOT_MULTIPLE_OF:
            return f"Number must be a multiple of {context['multiple_of']}"
        case IssueCode.NOT_FINITE:
            return "Number must be finite"
    return "Invalid input"


def _string_message(validation: Any) -> str:
    if isinstance(validation, Mapping):
        if "starts_with" in validation:
            return f'Invalid input: must start with "{validation["starts_with"]}"'
        if "ends_with" in validation:
            return f'Invalid input: must end with "{validation["ends_with"]}"'
        if "includes" in validation:
            return f'Invalid input: must include "{validation["includes"]}"'
    return _STRING_VALIDATIONS.get(validation, "Invalid")


def _bound_message(context: Mapping[str, Any], bound: Any, small: bool) -> str:
    kind = context.get("type")
    inclusive = context.get("inclusive", True)
    exact = context.get("exact", False)

    if kind in _SIZE_UNITS:
        noun, unit = _SIZE_UNITS[kind]
        if exact:
            qualifier = "exactly"
        elif small:
            qualifier = "at least" if inclusive else "over"
        else:
            qualifier = "at most" if inclusive else "under"
        return f"{noun} must contain {qualifier} {bound} {unit}"

    noun = "Date" if kind == "date" else "Number"
    if exact:
        return f"{noun} must be exactly {bound}"
    if small:
        relation = "greater than or equal to" if inclusive else "greater than"
    else:
        relation = "less than or equal to" if inclusive else "less than"
    return f"{noun} must be {relation} {bound}"
