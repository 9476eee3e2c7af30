"""Action template resolution.

Routes declare the actions they require as templates such as
``/user/{userid}/role/read``; placeholders are filled from the live route
parameters before the policy engine sees them.
"""
from typing import Any, List, Mapping, Optional, Sequence


def resolve_action_template(template: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Substitute every ``{name}`` with ``str(params[name])``.

    Placeholders without a matching parameter are left verbatim.
    """
    action = template
    for name, value in (params or {}).items():
        action = action.replace("{" + str(name) + "}", str(value))
    return action


def resolve_action_templates(
    templates: Sequence[str], params: Optional[Mapping[str, Any]] = None
) -> List[str]:
    return [resolve_action_template(t, params) for t in templates]
