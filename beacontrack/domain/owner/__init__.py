"""Owner domain: elders and map-app users that can hold a device."""
