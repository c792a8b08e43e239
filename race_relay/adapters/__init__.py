# race_relay/adapters/__init__.py

from .base import BaseAdapter
from .form_adapter import FormAdapter
from .midos_adapter import MidosAdapter

__all__ = [
    "BaseAdapter",
    "FormAdapter",
    "MidosAdapter",
]
