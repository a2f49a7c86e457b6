"""Domain layer: entities, exceptions and pure transforms."""
