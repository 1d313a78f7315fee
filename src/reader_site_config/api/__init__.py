"""HTTP surface for the configuration store."""
