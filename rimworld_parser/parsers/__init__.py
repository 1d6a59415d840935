"""Definition element parsers."""

from rimworld_parser.parsers.base_parser import BaseParser
from rimworld_parser.parsers.def_parser import DefParser

__all__ = ['BaseParser', 'DefParser']
