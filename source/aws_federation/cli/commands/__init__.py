# ABOUTME: CLI commands for aws-federation
# ABOUTME: Each command resolves a profile and acts on the client built for it
