"""
Investor research automation.

Researches a venture-capital firm by domain, publishes the analysis to the
Notion investor research database and links it from the Attio company record.
"""

__version__ = "0.1.0"
