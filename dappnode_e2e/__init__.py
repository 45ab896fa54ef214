"""
DAppNode end-to-end environment reconciler and package verifier.

Before testing, the DAppNode is driven to a known package set and
configuration. After a package is deployed, its containers, logs,
healthcheck and validator attestations are verified and every failure is
reported in a single error.
"""

__version__ = "0.1.0"
