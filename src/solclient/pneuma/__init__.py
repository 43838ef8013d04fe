"""
Pneuma - On-chain interaction layer for solclient.

Provides the JSON-RPC client, instance address derivation, record layout
and transaction utilities for talking to a Solana cluster.

Uses httpx + solders instead of the heavyweight solana-py client.
"""
