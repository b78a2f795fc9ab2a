"""Command line interface for DepLocate."""
