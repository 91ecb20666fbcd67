"""Shortcode allocation, redirect and click statistics engine."""

__version__ = '0.1.0'
