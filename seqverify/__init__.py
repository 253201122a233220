"""
SEQVERIFY: Sequence Verification Engine.

Conformance checking of telemetry event streams against declarative
state-transition expectations: ordered sets of acceptable state codes,
optional timing windows between consecutive transitions, attribution
filtering, and caller-level cardinality checks.
"""

__version__ = "0.1.0"
