"""Domain services: routing, persistence, lookups and external collaborators."""
