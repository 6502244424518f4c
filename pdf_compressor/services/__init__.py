"""Request handlers behind the route blueprints."""
