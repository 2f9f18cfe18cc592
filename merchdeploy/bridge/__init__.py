"""Network boundary: the ledger JSON-RPC gateway and the faucet client.

Modules
-------
ledger_gateway
    Balance, object, submit and status calls against the fullnode.
faucet
    Testnet faucet ``/gas`` requests.

Everything above this package talks to the network only through these two
modules; tests replace the transport with ``httpx.MockTransport``.
"""
