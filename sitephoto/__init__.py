"""
SitePhoto - Construction site photo annotation and ledger client.

This package contains the main application modules:
- core: Application core, backend client and records
- editor: Annotation session, tools and editor dialog
- ledger: Photo ledger layout and PDF export
- ui: User interface components
- services: Application services (config, logging)
"""

__version__ = "0.1.0"
