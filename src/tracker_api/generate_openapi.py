"""
Write the OpenAPI document of the task tracker to disk.

Client developers can consume a stable schema without running the server.
The app is built against the in-memory backend so no database is needed.

Usage:
    python -m tracker_api.generate_openapi [output_path]

Default output: interfaces/openapi.json under the current directory.
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, Optional

from .main import create_app, openapi_tags
from .settings import Settings

DEFAULT_OUTPUT = os.path.join("interfaces", "openapi.json")


def build_schema() -> Dict[str, Any]:
    """Return the OpenAPI schema with every declared tag present."""
    schema = create_app(Settings(persistence_backend="memory")).openapi()
    tags = schema.get("tags", []) or []
    names = {t.get("name") for t in tags if isinstance(t, dict)}
    tags.extend(t for t in openapi_tags if t["name"] not in names)
    if tags:
        schema["tags"] = tags
    return schema


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Write the schema to out_path (creating directories) and return the path."""
    out_path = out_path or DEFAULT_OUTPUT
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(build_schema(), f, indent=2, ensure_ascii=False)
    return out_path


def main() -> None:
    path = generate_openapi(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
