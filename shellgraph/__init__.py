"""
shellgraph: run shell scripts as a graph of OS processes wired together by
named pipes (FIFOs).
"""
__version__ = "0.1.0"
