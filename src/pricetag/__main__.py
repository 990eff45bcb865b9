# src/pricetag/__main__.py
"""Allow ``python -m pricetag``."""

from pricetag.app import main

main()
