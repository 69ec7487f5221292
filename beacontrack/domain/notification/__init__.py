"""Notification domain: gateways flagged as notification points."""
