"""Customer-facing notifications"""
