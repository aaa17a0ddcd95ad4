"""Third-party identity integrations."""
