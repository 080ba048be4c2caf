"""Core building blocks shared by fleet-commons features."""
