"""
Customer notes with a user-controlled display order.

Ranks per customer are kept dense (1..N); see service.py for the transaction
layout and ranking.py for the rank rewrites.
"""
