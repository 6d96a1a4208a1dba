"""MQTT 3.1/3.1.1 wire-format codec, packet types, protocol sniffing and pools."""

__version__ = "0.1.0"