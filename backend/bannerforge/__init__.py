"""BannerForge: promotional banner composition and slot-transform engine."""

__version__ = "0.1.0"
