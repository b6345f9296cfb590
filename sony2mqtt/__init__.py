"""MQTT bridge for PlayStation 5 and Sony Bravia TV control."""

__version__ = "1.0.0"
