"""Application services: use cases, ports, and domain errors."""
