"""
Browser test support: Playwright page objects for the demo page and PDF checks.
"""
