"""XML parsing components."""

from .xml_parser import XMLParser

__all__ = ['XMLParser']
