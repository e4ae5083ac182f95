from .base import ParserError, choose_parser

__all__ = ["ParserError", "choose_parser"]
