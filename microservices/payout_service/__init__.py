"""
Payout Service

Seller payout eligibility: revenue, eligible revenue and payout records.
"""
