"""Event lifecycle analytics: providers, builders, query services and the facade."""
