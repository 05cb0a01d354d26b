"""Service layer: Kubernetes resource access and the idling core."""
