import json
import logging
import re
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


def _looks_like_json(s: str) -> bool:
    return s.startswith("[") or s.startswith("{")


def parse_smart_list(data: Any) -> List[Any]:
    """Coerce whatever a recipe field holds into a list.

    Handles real lists, AI output double-encoded as ["[...]"], JSON strings
    (an object becomes a one-item list), and legacy newline-separated text.
    Anything else is wrapped as a single item.
    """
    if data is None or data == "" or data == []:
        return []

    if isinstance(data, (list, tuple)):
        if len(data) == 1 and isinstance(data[0], str):
            candidate = data[0].strip()
            if _looks_like_json(candidate):
                try:
                    parsed = json.loads(candidate)
                except ValueError:
                    parsed = None
                if isinstance(parsed, list):
                    return parsed
        return list(data)

    if isinstance(data, str):
        trimmed = data.strip()
        if _looks_like_json(trimmed):
            try:
                parsed = json.loads(trimmed)
            except ValueError as e:
                logger.debug("list field looked like JSON but did not parse: %s", e)
            else:
                if isinstance(parsed, list):
                    return parsed
                if isinstance(parsed, dict):
                    return [parsed]
        return [line.strip() for line in trimmed.split("\n") if line.strip()]

    return [data]


def _first(obj: dict, keys) -> Any:
    for key in keys:
        v = obj.get(key)
        if v not in (None, ""):
            return v
    return ""


def _text(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _as_dict(item: Any) -> Any:
    if hasattr(item, "model_dump"):
        return item.model_dump()
    return item


def format_ingredient(ing: Any) -> str:
    ing = _as_dict(ing)
    if ing is None or ing == "":
        return ""
    if isinstance(ing, str):
        return ing
    if not isinstance(ing, dict):
        return str(ing)

    amount = _text(_first(ing, ("amount", "qty")))
    item = _text(_first(ing, ("item", "name", "ingredient")))
    if amount and item:
        return f"{amount} {item}".strip()
    return (amount or item or json.dumps(ing, ensure_ascii=False)).strip()


def format_tool(tool: Any) -> str:
    tool = _as_dict(tool)
    if tool is None or tool == "":
        return ""
    if isinstance(tool, str):
        return tool
    if not isinstance(tool, dict):
        return str(tool)
    return _text(_first(tool, ("text", "name", "tool"))) or json.dumps(tool, ensure_ascii=False)


def format_instruction(step: Any) -> str:
    step = _as_dict(step)
    if step is None or step == "":
        return ""
    if isinstance(step, str):
        return step
    if not isinstance(step, dict):
        return str(step)
    return _text(_first(step, ("text", "step", "description"))) or json.dumps(step, ensure_ascii=False)


def to_lines(data: Any, formatter: Callable[[Any], str]) -> List[str]:
    lines = []
    for item in parse_smart_list(data):
        s = formatter(item).strip()
        if s:
            lines.append(s)
    return lines


def split_csv(data: Any, formatter: Callable[[Any], str]) -> List[str]:
    """Like to_lines, but a plain string is also split on commas ("a, b")."""
    if isinstance(data, str) and not _looks_like_json(data.strip()):
        parts = re.split(r"[,\n]", data)
        return [p.strip() for p in parts if p.strip()]
    return to_lines(data, formatter)
