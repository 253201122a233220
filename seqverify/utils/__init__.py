"""
Supporting utilities for SEQVERIFY: CSV event logs, structured logging,
and result reporting.
"""
