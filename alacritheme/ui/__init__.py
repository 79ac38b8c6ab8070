"""Textual user interface for alacritheme."""
