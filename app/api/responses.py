from __future__ import annotations

from typing import Any


def ok_response(data: Any) -> dict[str, Any]:
    """Wrap a successful payload in the standard API envelope."""
    return {"status": "ok", "data": data}
