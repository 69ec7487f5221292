"""Domain layer: device binding model, ports and errors."""
