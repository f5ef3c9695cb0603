"""
Shipping-instruction printouts: history of printed instructions,
searchable by delivery date, shipping date or print time.
"""
