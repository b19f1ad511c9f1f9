"""Reservations domain - service requests and their status machine"""
