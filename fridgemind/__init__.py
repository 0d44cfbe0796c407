# FridgeMind API package
__version__ = "1.0.0"
