"""
ficta - file-watching completion assistant
"""

__version__ = "1.1.0"
