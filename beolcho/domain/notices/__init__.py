"""Notices domain - admin announcements and their comments"""
