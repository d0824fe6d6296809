"""
Pricing Portal Package

Price-adjustment engine for the media pricing portal.
Resolves displayed prices from catalog prices using Global → User adjustment rules.
"""

__version__ = "1.0.0"
