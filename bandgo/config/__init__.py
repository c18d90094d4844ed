"""Configuration for bandgo."""

from bandgo.config.bandgo_config import DEFAULT_BANDGO_CONFIG, BandgoConfig

__all__: list[str] = ["BandgoConfig", "DEFAULT_BANDGO_CONFIG"]
