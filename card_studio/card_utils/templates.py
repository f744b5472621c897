# template / frame definitions.
# each template lives in template_json/<category>/<name>.json and is
# registered into the Templates table at startup (see db_access).
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

TEMPLATE_JSON_DIR = Path(__file__).parent.parent / "template_json"

REQUIRED_KEYS = ("id", "name")


class TemplateError(ValueError):
    pass


def load_template(path, category: Optional[str] = None) -> Dict[str, Any]:
    """
    Load one template definition from a JSON file.

    :param path: path to the JSON file
    :param category: fallback category, normally the parent directory name
    """
    path = Path(path)
    with open(path, "r") as f:
        data = json.load(f)

    missing = [key for key in REQUIRED_KEYS if not data.get(key)]
    if missing:
        raise TemplateError(f"{path.name}: missing {', '.join(missing)}")

    return {
        "id": data["id"],
        "name": data["name"],
        "category": data.get("category") or category or path.parent.name,
        "description": data.get("description", ""),
        "tags": [str(t).lower() for t in data.get("tags", [])],
        "is_premium": bool(data.get("is_premium", False)),
        "template_data": data.get("template_data", {}),
    }


def suggest_template(tags: Iterable[str], templates: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """First template sharing a tag with ``tags``; otherwise the first template."""
    if not templates:
        return None
    wanted = {t.lower() for t in tags or []}
    for template in templates:
        if wanted & set(template.get("tags", [])):
            return template
    return templates[0]
