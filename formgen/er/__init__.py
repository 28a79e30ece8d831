"""Entity-relationship derivation, layered layout, and Mermaid export."""
