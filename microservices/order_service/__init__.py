"""
Order Service

Order lifecycle state machine with an embedded refund ledger.
"""
