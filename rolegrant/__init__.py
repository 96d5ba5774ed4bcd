"""
rolegrant - wildcard permissions and persistable role granting.
"""

__version__ = "0.1.0"
