"""
Extractors for WordPress content.

This subpackage pages through the WordPress REST API posts endpoint and
returns the raw post objects.
"""
