"""
practice-analytics: learning analytics over practice question banks.
"""

__version__ = "0.1.0"
