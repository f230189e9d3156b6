from typing import Any

def normalize(value: Any) -> Any:
    try:
        if isinstance(value, (list, tuple, set, frozenset)):
            return [normalize(v) for v in value]
        if isinstance(value, dict):
            return {str(k): normalize(v) for k, v in value.items()}
        if hasattr(value, "quantize"):
            return str(value)
        return str(value) if not isinstance(value, (str, int, float, bool, type(None))) else value
    except Exception:
        return str(value)


def normalize_ctx(ctx: dict[str, Any]) -> dict[str, Any]:
    return {k: normalize(v) for k, v in ctx.items()}
