"""Chat domain - one-to-one consultation rooms keyed by customer uid"""
