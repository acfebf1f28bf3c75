"""Adapters binding the reconciliation core to Kubernetes and EC2."""
