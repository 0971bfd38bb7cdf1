"""Allow running as ``python -m docker_attach_mcp``."""

from docker_attach_mcp.mcp_server import main

main()
