"""Application layer: services and use cases that orchestrate the domain."""
