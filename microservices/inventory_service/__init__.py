"""
Inventory Service

Per-product (optionally per color x size) available-quantity ledger.
"""
