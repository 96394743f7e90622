"""Infrastructure layer: storage, reputation and clock adapters, logging."""
