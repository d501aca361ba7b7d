"""Wallpanel kiosk provisioning tool."""

__version__ = "4.0.0"
