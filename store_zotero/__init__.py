"""
store-zotero: list, open and cite items from a local Zotero library.
"""

__version__ = "0.1.0"
