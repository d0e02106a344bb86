"""
Dialogue script language - reader, AST and parser.
"""

from dialogue.script.nodes import Script
from dialogue.script.parser import Parser, parse_script
from dialogue.script.reader import Reader, read

__all__ = [
    "Script",
    "Parser",
    "parse_script",
    "Reader",
    "read",
]
