from .base import ChainRpc, ChainRpcError, Signer

__all__ = ["ChainRpc", "ChainRpcError", "Signer"]
