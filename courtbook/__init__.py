"""Court slot reservation engine."""
