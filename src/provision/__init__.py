"""WordPress and test library provisioning."""
