from .blame import BlameServicePort
from .symbols import SymbolServicePort

__all__ = ["BlameServicePort", "SymbolServicePort"]
