"""
Layered Configuration Example

This example demonstrates the resolution pipeline:
1. Declare the schema in YAML
2. Layer an in-memory source under the environment
3. Read the full and the public view
4. Reload after the environment changes, including a failing reload

Run: python examples/01-layered-config/main.py
"""

import logging
from pathlib import Path

from stratum import ConfigEngine, MappingSource

SCHEMA = Path(__file__).parent / "schema.yaml"


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    environ = {"APP_APIKEY": "sk-live-123", "APP_SERVICE_BASEURL": "https://api.prod.example.com"}
    local = MappingSource("local", 10, {"port": "9000", "debug": "yes"})

    engine = ConfigEngine.from_declaration(SCHEMA, [local], environ=lambda: environ)
    engine.start()

    print(f"Full view:   {engine.get_config()!r}")
    print(f"Public view: {engine.get_public_config().to_dict()}")
    print(f"Public tree: {engine.snapshot.public_tree().to_dict()}")
    print()

    # A good reload publishes a new version
    environ["APP_PORT"] = "9443"
    result = engine.reload()
    print(f"Reload: {result.to_dict()}")

    # A bad reload keeps the last good snapshot
    environ["APP_PORT"] = "not-a-port"
    result = engine.reload()
    print(f"Reload: {result.to_dict()}")
    print(f"Still serving version={engine.version}, port={engine.get_public_config()['port']}")


if __name__ == "__main__":
    main()
