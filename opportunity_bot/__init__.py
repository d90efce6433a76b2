"""
Opportunity Bot - Post opportunities from RSS feeds to Telegram channels.

A Python application that scans scholarship, volunteering, NGO and tech
job feeds and posts new items to Telegram channels, with admin controls
over a Telegram chat.
"""

__version__ = "1.0.0"
