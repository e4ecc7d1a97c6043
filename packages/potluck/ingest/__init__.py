"""Ingest helpers that turn the published sheet export into records."""

from .csv_decoder import decode, split_csv_line

__all__ = ["decode", "split_csv_line"]
