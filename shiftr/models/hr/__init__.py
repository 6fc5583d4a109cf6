# shiftr/models/hr/__init__.py

from .shift import Shift
