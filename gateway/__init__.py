from gateway.forwarder import GatewayForwarder, RelayedResponse

__all__ = ["GatewayForwarder", "RelayedResponse"]
