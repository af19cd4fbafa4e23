"""
Node Medic — readiness-probe sidecar for Ethereum execution clients.

Evaluates whether a node (Nethermind, Erigon, Reth or any JSON-RPC client)
is healthy enough to serve traffic and reports the verdict on GET /ready.
Modular layout: RPC client, client detector, health strategies, composite
evaluator, API server, and an optional background poller.
"""

__version__ = "0.1.0"
