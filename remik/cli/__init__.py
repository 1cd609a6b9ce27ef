"""Command line interface for the Remik engine."""
