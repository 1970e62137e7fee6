from dynamodb_mcp.server import main

main()
