"""In-memory warehouse inventory with a JSON HTTP API and a sample-data loader."""

__version__ = "0.1.0"