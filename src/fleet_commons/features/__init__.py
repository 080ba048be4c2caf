"""Feature modules for fleet-commons."""
