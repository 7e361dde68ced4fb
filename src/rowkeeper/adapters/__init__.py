"""Adapters implementing the rowkeeper ports."""
