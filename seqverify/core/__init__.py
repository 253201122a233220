"""
Core verification engine for SEQVERIFY.

Contains the event and expected-trace data model, the forward-scanning
sequence verifier, violation records, event selection filters, and
caller-level post-condition checks.
"""
