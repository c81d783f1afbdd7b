"""spo-admin: SharePoint Online administration from the command line.

This package exposes the authenticator, configuration loading, the
SharePoint REST client, auditing and the command set.
"""

__version__ = "0.3.0"
