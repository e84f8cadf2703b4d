"""Bollettino giornaliero della qualità dell'aria in Emilia-Romagna (dati ARPAE)."""

__version__ = "0.1.0"
