"""
Reactive Bindings Example

This example demonstrates the state contracts:
1. A store bound to the public configuration follows reloads
2. Derived accessors stay live instead of copying values
3. Stores reject values that cannot cross the wire
4. Transient bindings hold callables, but never tracked values

Run: python examples/02-reactive-bindings/main.py
"""

from stratum import BoundaryViolationError, ConfigEngine, MirroredStateError
from stratum.reactive import Store, TransientBinding, bind_public_config, derived, tracked

DECLARATION = {
    "service": {"type": "nested", "visibility": "public"},
    "service.baseUrl": {"type": "string", "visibility": "public", "default": "https://a.example.com"},
    "apiKey": {"type": "string", "default": "dev-key"},
}


def main():
    environ = {}
    engine = ConfigEngine.from_declaration(DECLARATION, environ=lambda: environ)
    engine.start()

    # =========================================================================
    # Live accessors over the public configuration
    # =========================================================================

    public = bind_public_config(engine.cache)
    base_url = public.select("service.baseUrl")
    endpoint = derived(lambda url: f"{url}/v1/items", base_url, name="endpoint")

    print(f"Endpoint: {endpoint.get()}")
    environ["APP_SERVICE_BASEURL"] = "https://b.example.com"
    engine.reload()
    print(f"Endpoint after reload: {endpoint.get()}")
    print()

    # =========================================================================
    # Store guard
    # =========================================================================

    settings = Store({"theme": "dark"}, name="settings")
    try:
        settings.publish({"theme": "light", "on_change": lambda: None})
    except BoundaryViolationError as e:
        print(f"Rejected: {e}")
    print(f"Store still holds: {settings.peek().to_dict()}")

    banner = tracked(lambda: f"{settings.get()['theme']} @ {base_url.get()}")
    print(f"Banner: {banner.get()}")
    print()

    # =========================================================================
    # Transient bindings
    # =========================================================================

    on_submit = TransientBinding(lambda form: print(f"submit {form}"), name="on_submit")
    on_submit.peek()({"id": 1})

    try:
        TransientBinding(base_url)
    except MirroredStateError as e:
        print(f"Refused: {e}")


if __name__ == "__main__":
    main()
