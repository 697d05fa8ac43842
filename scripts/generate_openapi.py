#!/usr/bin/env python3
"""
Generate the OpenAPI document of the settings service.
Used to publish the API reference next to the build step documentation.
"""

import argparse
import json
import os
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Settings are validated at import time; nothing is contacted while generating
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SETTINGS_ENCRYPTION_KEY", "openapi-generation-key")
os.environ.setdefault("KEYCLOAK_CLIENT_ID", "quality-report")


def generate_openapi_spec(server_url: str | None = None, path_prefix: str = "") -> dict:
    """
    Build the OpenAPI schema with an optional server URL and path prefix.

    Args:
        server_url: Base server URL (e.g., "https://ci-settings.example.com")
        path_prefix: Path prefix the service is mounted under (e.g., "/quality-report")
    """
    from app.main import app

    openapi_schema = app.openapi()

    if server_url:
        openapi_schema["servers"] = [
            {
                "url": f"{server_url.rstrip('/')}{path_prefix}",
                "description": "Production server",
            }
        ]
    elif path_prefix:
        openapi_schema["servers"] = [
            {"url": path_prefix, "description": "API server with path prefix"}
        ]
        openapi_schema["paths"] = {
            f"{path_prefix.rstrip('/')}{path}": methods
            for path, methods in openapi_schema.get("paths", {}).items()
        }

    return openapi_schema


def main() -> Path:
    parser = argparse.ArgumentParser(description="Generate OpenAPI specification")
    parser.add_argument("--server-url", type=str, help="Base server URL")
    parser.add_argument("--path-prefix", type=str, default="", help="API path prefix")
    parser.add_argument(
        "--output",
        type=str,
        default="openapi.json",
        help="Output file path (default: openapi.json)",
    )
    args = parser.parse_args()

    print("Generating OpenAPI specification...")
    openapi_spec = generate_openapi_spec(
        server_url=args.server_url, path_prefix=args.path_prefix
    )

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(openapi_spec, indent=2))

    info = openapi_spec.get("info", {})
    print(f"OpenAPI specification generated: {output_path}")
    print(f"API Title: {info.get('title', 'Unknown')}")
    print(f"API Version: {info.get('version', 'Unknown')}")
    print(f"Endpoints: {len(openapi_spec.get('paths', {}))}")

    return output_path


if __name__ == "__main__":
    main()
