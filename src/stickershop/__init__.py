"""Custom sticker and DTF transfer storefront backend."""

__version__ = "0.1.0"
