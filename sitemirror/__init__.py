"""
sitemirror

Mirrors a set of hosts onto local disk by crawling from seed URLs.
"""

__version__ = "1.0.0"
__description__ = "A bounded-scope crawler that mirrors websites onto the local filesystem"
