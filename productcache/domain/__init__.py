"""Domain layer: product entities, mappings and cache value objects."""
