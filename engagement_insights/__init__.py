"""
Engagement Insights - authenticated session scraping engine.
"""
__version__ = "1.0.0"
