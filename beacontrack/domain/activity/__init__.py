"""Activity domain: beacon sightings and their anonymized archive."""
