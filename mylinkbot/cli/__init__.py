"""CLI for mylinkbot."""
