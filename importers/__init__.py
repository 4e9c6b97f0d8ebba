"""Importers that load listings into the store table."""
