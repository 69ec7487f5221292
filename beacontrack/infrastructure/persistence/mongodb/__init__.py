"""MongoDB (motor) adapters."""
