"""NiceGUI presentation layer for the cart page."""
