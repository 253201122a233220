"""
Trace definition parser for SEQVERIFY.

Provides lexical analysis, parsing, and file loading for the compact
expected-trace language: ordered sets of state codes or declared state
names joined by plain or timed arrows.
"""
