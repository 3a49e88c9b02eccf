"""tsgraph — lowers TypeScript sources into a closed graph vocabulary"""

__version__ = "0.1.0"
