"""Network clients: JSON-RPC nodes and the deployment service."""
