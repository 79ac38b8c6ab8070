"""Interactive Alacritty theme picker."""

__version__ = "0.1.0"
