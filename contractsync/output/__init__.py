from .json_formatter import FindingsJSONFormatter

__all__ = ['FindingsJSONFormatter']
