from mcp_ckan_server.server import run

run()
