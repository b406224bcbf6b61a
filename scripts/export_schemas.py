"""Export JSON schemas for the relay request body and analytics payload."""

import json
from pathlib import Path

from ai_proxy.app.models import AnalyticsData, ProxyRequest


def main() -> None:
    """Export schemas to docs/schemas/."""
    schemas_dir = Path("docs/schemas")
    schemas_dir.mkdir(parents=True, exist_ok=True)

    for name, model in (("ProxyRequest", ProxyRequest), ("AnalyticsData", AnalyticsData)):
        # Schemas describe the wire format, so use the camelCase aliases
        schema = model.model_json_schema(by_alias=True)
        path = schemas_dir / f"{name}.schema.json"
        with open(path, "w") as f:
            json.dump(schema, f, indent=2)
        print(f"Exported {name} schema to {path}")


if __name__ == "__main__":
    main()
