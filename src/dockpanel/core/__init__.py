"""Core domain: models, errors, and the lifecycle/registry services."""
