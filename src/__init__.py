"""focus-gate service packages."""
