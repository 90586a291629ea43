"""
Workspace resource authorization core
Token verification, hierarchical permission resolution and permission-scoped listings
"""

__version__ = "0.1.0"
