"""Domain-layer contracts shared by services and infrastructure."""
