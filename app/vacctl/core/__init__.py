"""Core infrastructure: XDG paths and console theming."""
