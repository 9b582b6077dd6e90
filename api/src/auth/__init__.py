"""Access-token authentication and role checks."""
