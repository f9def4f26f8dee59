"""Command line interface for the ingestion pipeline."""
