"""TradeGuard MCPサーバーのコマンドラインエントリポイント。"""

if __name__ == "__main__":
    import logging

    import uvicorn
    from starlette.middleware import Middleware

    from tradeguard.config import ServerConfig
    from tradeguard.middleware import TokenAuthMiddleware
    from tradeguard.server import create_server

    config = ServerConfig()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    mcp = create_server(config)
    app = mcp.http_app(
        transport="streamable-http",
        middleware=[Middleware(TokenAuthMiddleware, url_token=config.url_token)],
    )
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
