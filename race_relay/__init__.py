"""Race relay: forwards newly scheduled races to a Google Form, once per race."""

__version__ = "1.0.0"
