"""Beolcho booking backend"""
